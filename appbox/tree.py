"""
appbox command tree: the executable representation behind appbox.commands.

What this module provides
- Node: one executable command with flags, children and I/O sinks.
  • Routing: the argument list is walked to find the deepest matching child
    (by name or alias); flags and flag values are skipped while walking.
  • Parsing: flags are parsed with argparse (flag syntax is entirely
    argparse's); every node gets a -h/--help flag; all remaining tokens are
    handed to the node as positional arguments.
  • Rendering: usage text in the familiar "Usage: / Available Commands: /
    Flags: / Global Flags:" layout, plus a minimal default help.
  • Introspection: hidden __complete and __completeNoDesc commands list the
    candidates for shell completion, followed by a ":<directive>" line.
- Completion script generators for bash, fish, powershell and zsh; each
  script calls back into "<program> __complete ...".
- Man pages: generate_man() / generate_man_tree() write roff documents.

Output sinks
- out: usage, help and deprecation notices (defaults to sys.stderr, except for
  completion output which defaults to sys.stdout).
- err: error messages (defaults to sys.stderr).
- Sinks are inherited from the nearest ancestor that sets them.

Errors
- Parser failures and positional-argument validation failures raise
  faults.UsageError. Unless silenced, "Error: <message>" is printed to the
  error sink and the usage to the output sink first.
- Exceptions raised by run handlers propagate unchanged.
"""
import argparse
import datetime
import functools
import os
import sys

from .commands import no_args
from .faults import UsageError
from .flags import FlagSet
from .utils import Unset, coalesce, rpad, trim_right

COMPLETE_COMMAND = "__complete"
COMPLETE_NO_DESC_COMMAND = "__completeNoDesc"

DIRECTIVE_DEFAULT = 0
DIRECTIVE_ERROR = 1
DIRECTIVE_NO_SPACE = 2
DIRECTIVE_NO_FILE_COMP = 4

_MIN_NAME_PADDING = 11


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of printing and exiting."""

    def error(self, message):
        raise UsageError(message)

    def exit(self, status=0, message=None):
        raise UsageError(trim_right(message or f"exit status {status}"))


class CompletionOptions:
    """Knobs for the completion support of a root node."""

    def __init__(self):
        self.disable_default_command = False


class _Parsed:
    """The argparse parser of a node with its flag bindings."""

    def __init__(self, parser, local, inherited, bindings):
        self.parser = parser
        self.local = local
        self.inherited = inherited
        self.bindings = bindings
        self.options = {option: action for action in (*local, *inherited) for option in action.option_strings}


class Node:
    """
    An executable command.

    Attributes
    - use: one-line usage; its first word is the command name.
    - aliases, short, long, deprecated, hidden: metadata.
    - validator: validator(command_path, args) raising UsageError, or None.
    - run: run(node, args) handler, or None for a non-runnable node.
    - flags / persistent_flags: FlagSets; persistent flags also apply to all
      descendants.
    - help_function: help_function(node) replacing the default help output.
    - silence_errors / silence_usage: suppress the runtime's own reporting.
    - disable_flag_parsing: hand every token to the node as positional.
    """

    def __init__(
            self,
            use,
            /,
            aliases=(),
            short="",
            long="",
            *,
            deprecated="",
            hidden=False,
            validator=None,
            run=None
    ):
        if not isinstance(use, str) or not use.strip():
            raise ValueError("node 'use' must be a non-empty string")
        self.use = use
        self.aliases = tuple(aliases)
        self.short = short
        self.long = long
        self.deprecated = deprecated
        self.hidden = hidden
        self.validator = validator
        self.run = run
        self.flags = FlagSet()
        self.persistent_flags = FlagSet()
        self.help_function = None
        self.silence_errors = False
        self.silence_usage = False
        self.disable_flag_parsing = False
        self.completion_options = CompletionOptions()
        self.parent = None
        self.children = []
        self._out = None
        self._err = None
        self._in = None
        self._args = Unset

    def __repr__(self):
        return f"node(path={self.command_path!r})"

    # ── Structure ───────────────────────────────────────────────────────────

    @property
    def name(self):
        return self.use.split()[0]

    @property
    def root(self):
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def command_path(self):
        if self.parent is None:
            return self.name
        return f"{self.parent.command_path} {self.name}"

    @property
    def use_line(self):
        line = f"{self.parent.command_path} {self.use}" if self.parent is not None else self.use
        if "[flags]" not in line:
            line += " [flags]"
        return line

    @property
    def runnable(self):
        return self.run is not None

    @property
    def available(self):
        return not self.hidden and not self.deprecated

    @property
    def has_available_children(self):
        return any(child.available for child in self.children)

    def add(self, *children):
        for child in children:
            if not isinstance(child, Node):
                raise TypeError("add() arguments must be nodes")
            if child is self:
                raise ValueError("a node cannot be a child of itself")
            child.parent = self
            self.children.append(child)
            child._forget_parsers()

    def remove(self, *children):
        for child in children:
            self.children.remove(child)
            child.parent = None
            child._forget_parsers()

    def _forget_parsers(self):
        # Parsers include inherited persistent flags, so they depend on the ancestry.
        for node in self.walk():
            node.__dict__.pop("_parsed", None)

    def child(self, name, /):
        """Return the child called name (or aliased as name), or None."""
        for child in self.children:
            if child.name == name or name in child.aliases:
                return child
        return None

    def walk(self):
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    # ── I/O ─────────────────────────────────────────────────────────────────

    def set_out(self, writer, /):
        self._out = writer

    def set_err(self, writer, /):
        self._err = writer

    def set_in(self, reader, /):
        self._in = reader

    def set_args(self, args, /):
        self._args = list(args)

    def _inherited(self, name, /):
        node = self
        while node is not None:
            if (value := getattr(node, name)) is not None:
                return value
            node = node.parent
        return None

    @property
    def out_or_stderr(self):
        return self._inherited("_out") or sys.stderr

    @property
    def out_or_stdout(self):
        return self._inherited("_out") or sys.stdout

    @property
    def err_or_stderr(self):
        return self._inherited("_err") or sys.stderr

    @property
    def in_or_stdin(self):
        return self._inherited("_in") or sys.stdin

    # ── Flags ───────────────────────────────────────────────────────────────

    def _inherited_flag_sets(self):
        node, flag_sets = self.parent, []
        while node is not None:
            flag_sets.append(node.persistent_flags)
            node = node.parent
        return flag_sets

    @functools.cached_property
    def _parsed(self):
        parser = _Parser(prog=self.command_path, add_help=False, allow_abbrev=False)
        bindings = self.flags.apply(parser) + self.persistent_flags.apply(parser)
        local = [action for action, _ in bindings]
        names = [option for action in local for option in action.option_strings]
        if "--help" not in names:
            options = ["--help"] if "-h" in names else ["-h", "--help"]
            local.append(parser.add_argument(*options, action="store_true", dest="_help", help=f"help for {self.name}"))
        inherited = []
        for flag_set in self._inherited_flag_sets():
            for action, target in flag_set.apply(parser):
                inherited.append(action)
                bindings.append((action, target))
        parser.add_argument("_args", nargs="*")
        return _Parsed(parser, local, inherited, bindings)

    def _normalize_option(self, option, /):
        for flag_set in (self.flags, self.persistent_flags, *self._inherited_flag_sets()):
            option = flag_set.normalized(option)
        return option

    def _normalize_tokens(self, args, /):
        tokens = []
        for index, token in enumerate(args):
            if token == "--":
                tokens.extend(args[index:])
                break
            if token.startswith("--") and len(token) > 2:
                option, separator, value = token.partition("=")
                token = self._normalize_option(option) + separator + value
            tokens.append(token)
        return tokens

    def _child_index(self, args, /):
        """Index of the first positional token in args, skipping flags and their values."""
        options = self._parsed.options
        skip = False
        for index, token in enumerate(args):
            if skip:
                skip = False
                continue
            if token == "--":
                return None
            if token.startswith("--"):
                option, separator, _ = token.partition("=")
                action = options.get(self._normalize_option(option))
                skip = not separator and action is not None and action.nargs != 0
                continue
            if token.startswith("-") and len(token) > 1:
                action = options.get(token[:2])
                skip = len(token) == 2 and action is not None and action.nargs != 0
                continue
            return index
        return None

    def find(self, args, /):
        """
        Route args to the deepest matching descendant.

        Returns
        - (node, remaining args) with the matched command names removed.
        """
        node, rest = self, list(args)
        while (index := node._child_index(rest)) is not None:
            if (child := node.child(rest[index])) is None:
                break
            del rest[index]
            node = child
        return node, rest

    def parse(self, args, /):
        """
        Parse args against this node's flags.

        Flag values are stored on their targets.

        Returns
        - (help requested, positional arguments)
        """
        if self.disable_flag_parsing:
            return False, list(args)
        parsed = self._parsed
        namespace = parsed.parser.parse_intermixed_args(self._normalize_tokens(list(args)))
        for action, target in parsed.bindings:
            setattr(target, action.dest, getattr(namespace, action.dest))
        return bool(getattr(namespace, "_help", False)), list(getattr(namespace, "_args", None) or [])

    # ── Rendering ───────────────────────────────────────────────────────────

    def usage(self):
        """Return the usage block (no trailing newline)."""
        lines = ["Usage:"]
        if self.runnable:
            lines.append(f"  {self.use_line}")
        if self.has_available_children:
            lines.append(f"  {self.command_path} [command]")
        if self.aliases:
            lines.extend(["", "Aliases:", "  " + ", ".join((self.name, *self.aliases))])
        if self.has_available_children:
            available = [child for child in self.children if child.available]
            padding = max(_MIN_NAME_PADDING, *(len(child.name) for child in available))
            lines.extend(["", "Available Commands:"])
            lines.extend(trim_right(f"  {rpad(child.name, padding)} {child.short}") for child in available)
        if local := _flag_usages(self._parsed.local):
            lines.extend(["", "Flags:", local])
        if inherited := _flag_usages(self._parsed.inherited):
            lines.extend(["", "Global Flags:", inherited])
        if self.has_available_children:
            lines.extend(["", f'Use "{self.command_path} [command] --help" for more information about a command.'])
        return "\n".join(lines)

    def help(self):
        """Print help through help_function, or the default help to the output sink."""
        if self.help_function is not None:
            return self.help_function(self)
        text = self.long or self.short
        self.out_or_stdout.write((f"{text}\n\n" if text else "") + self.usage() + "\n")

    # ── Execution ───────────────────────────────────────────────────────────

    def _report(self, error, /):
        if not self.silence_errors:
            self.err_or_stderr.write(f"Error: {error}\n")
        if not self.silence_usage:
            self.out_or_stderr.write(self.usage() + "\n")

    def _init_default_completion(self):
        if self.completion_options.disable_default_command or not self.children or self.child("completion"):
            return
        completion = Node("completion", short="Generate the autocompletion script for the specified shell")
        for shell, generate in GENERATORS.items():
            completion.add(Node(
                shell,
                short=f"Generate the autocompletion script for {shell}",
                validator=no_args,
                run=lambda node, args, generate=generate: generate(self, node.out_or_stdout),
            ))
        self.add(completion)

    def _init_complete(self):
        for use, descriptions in ((COMPLETE_COMMAND, True), (COMPLETE_NO_DESC_COMMAND, False)):
            if self.child(use) is None:
                node = Node(
                    f"{use} [command-line]",
                    short="Request shell completion choices for the specified command-line",
                    hidden=True,
                    run=functools.partial(self._complete, descriptions=descriptions),
                )
                node.disable_flag_parsing = True
                self.add(node)

    def _complete(self, node, args, *, descriptions):
        *words, partial = args or [""]
        target, _ = self.find(words)
        candidates = []
        directive = DIRECTIVE_DEFAULT
        if partial.startswith("-"):
            parsed = target._parsed
            for action in (*parsed.local, *parsed.inherited):
                if action.help == argparse.SUPPRESS:
                    continue
                for option in action.option_strings:
                    if option.startswith("--") and option.startswith(partial):
                        candidates.append((option, action.help or ""))
            directive = DIRECTIVE_NO_FILE_COMP
        elif target.has_available_children:
            for child in target.children:
                if child.available and child.name.startswith(partial):
                    candidates.append((child.name, child.short))
            directive = DIRECTIVE_NO_FILE_COMP
        out = node.out_or_stdout
        for name, text in candidates:
            out.write(f"{name}\t{text}\n" if descriptions and text else f"{name}\n")
        out.write(f":{directive}\n")

    def execute(self):
        """
        Route, parse and run the arguments set with set_args() (sys.argv[1:] by default).

        Always executes from the root.
        """
        if self.parent is not None:
            return self.root.execute()
        self._init_default_completion()
        self._init_complete()
        node, rest = self.find(coalesce(self._args, sys.argv[1:]))
        if node.deprecated:
            node.out_or_stderr.write(f'Command "{node.name}" is deprecated, {node.deprecated}\n')
        try:
            help, args = node.parse(rest)
            if help or not node.runnable:
                return node.help()
            if node.validator is not None:
                node.validator(node.command_path, args)
        except UsageError as error:
            node._report(error)
            raise
        node.run(node, args)


def _flag_type(action, /):
    if isinstance(action.metavar, str):
        return action.metavar
    if action.type is None:
        return "string"
    return {str: "string", int: "int", float: "float"}.get(action.type, getattr(action.type, "__name__", "value"))


def _flag_default(action, /):
    if action.nargs == 0:
        return " (default true)" if action.default is True else ""
    if action.default in (None, "", [], ()):
        return ""
    if isinstance(action.default, str):
        return f' (default "{action.default}")'
    return f" (default {action.default})"


def _flag_usages(actions, /):
    """Render flags one per line with help text aligned in a single column."""
    rows = []
    for action in actions:
        if action.help == argparse.SUPPRESS:
            continue
        shorts = [option for option in action.option_strings if not option.startswith("--")]
        longs = [option for option in action.option_strings if option.startswith("--")]
        if shorts and longs:
            left = f"  {', '.join(shorts)}, {', '.join(longs)}"
        elif longs:
            left = f"      {', '.join(longs)}"
        else:
            left = f"  {', '.join(shorts)}"
        if action.nargs != 0:
            left += f" {_flag_type(action)}"
        rows.append((left, (action.help or "") + _flag_default(action)))
    if not rows:
        return ""
    width = max(len(left) for left, _ in rows)
    return "\n".join(trim_right(f"{rpad(left, width)}   {text}") for left, text in rows)


# ── Completion scripts ───────────────────────────────────────────────────────


_BASH = """\
# bash completion for __NAME__

___FUNCTION___complete() {
    local cur out directive
    cur="${COMP_WORDS[COMP_CWORD]}"
    out=$("${COMP_WORDS[0]}" __completeNoDesc "${COMP_WORDS[@]:1:COMP_CWORD-1}" "${cur}" 2>/dev/null)
    directive=$(printf '%s\\n' "${out}" | tail -n 1)
    directive=${directive#:}
    out=$(printf '%s\\n' "${out}" | sed '$d')
    local IFS=$'\\n'
    COMPREPLY=($(compgen -W "${out}" -- "${cur}"))
    if [[ ${#COMPREPLY[@]} -eq 0 && $((directive & 4)) -eq 0 ]]; then
        COMPREPLY=($(compgen -f -- "${cur}"))
    fi
}

complete -o default -F ___FUNCTION___complete __NAME__
"""

_FISH = """\
# fish completion for __NAME__

function ___FUNCTION___complete
    set -l args (commandline -opc)
    set -e args[1]
    set -l out (__NAME__ __complete $args (commandline -ct) 2>/dev/null)
    set -e out[-1]
    for line in $out
        echo $line
    end
end

complete -c __NAME__ -f -a '(___FUNCTION___complete)'
"""

_POWERSHELL = """\
# powershell completion for __NAME__

Register-ArgumentCompleter -Native -CommandName '__NAME__' -ScriptBlock {
    param($WordToComplete, $CommandAst, $CursorPosition)
    $Elements = @($CommandAst.CommandElements | Select-Object -Skip 1 | ForEach-Object { $_.ToString() })
    if ($WordToComplete -ne '' -and $Elements.Count -gt 0) {
        $Elements = @($Elements | Select-Object -SkipLast 1)
    }
    $Out = @(& '__NAME__' __complete @Elements "$WordToComplete" 2>$null)
    $Out | Select-Object -SkipLast 1 | ForEach-Object {
        $Name, $Description = $_ -split "`t", 2
        if (-not $Description) { $Description = $Name }
        [System.Management.Automation.CompletionResult]::new($Name, $Name, 'ParameterValue', $Description)
    }
}
"""

_ZSH = """\
#compdef __NAME__
# zsh completion for __NAME__

___FUNCTION__() {
    local out directive
    local -a completions
    out=$(${words[1]} __complete "${(@)words[2,$((CURRENT-1))]}" "${words[CURRENT]}" 2>/dev/null)
    directive=${${(f)out}[-1]#:}
    for line in "${(@f)out}"; do
        [[ ${line} == :* ]] && continue
        completions+=("${line//:/\\\\:}")
    done
    completions=("${(@)completions//$'\\t'/:}")
    if (( ${#completions} )); then
        _describe 'completions' completions
    elif (( ! (directive & 4) )); then
        _files
    fi
}

if [ "$funcstack[1]" = "___FUNCTION__" ]; then
    ___FUNCTION__ "$@"
else
    compdef ___FUNCTION__ __NAME__
fi
"""


def _script(template, node, writer, /):
    name = node.root.name
    function = "".join(char if char.isalnum() else "_" for char in name)
    writer.write(template.replace("__NAME__", name).replace("__FUNCTION__", function))


def generate_bash_completion(node, writer, /):
    _script(_BASH, node, writer)


def generate_fish_completion(node, writer, /):
    _script(_FISH, node, writer)


def generate_powershell_completion(node, writer, /):
    _script(_POWERSHELL, node, writer)


def generate_zsh_completion(node, writer, /):
    _script(_ZSH, node, writer)


GENERATORS = {
    "bash": generate_bash_completion,
    "fish": generate_fish_completion,
    "powershell": generate_powershell_completion,
    "zsh": generate_zsh_completion,
}


# ── Man pages ────────────────────────────────────────────────────────────────


class ManHeader:
    """
    The .TH line of a man page.

    Blank fields are filled per page: title from the command path, section
    "1" and the date from $SOURCE_DATE_EPOCH or the current time.
    """

    def __init__(self, title="", section="", *, date=Unset, source="", manual=""):
        self.title = title
        self.section = section
        self.date = date
        self.source = source
        self.manual = manual


def _roff(text, /):
    lines = []
    for line in text.replace("\\", "\\e").replace("-", "\\-").splitlines():
        lines.append("\\&" + line if line.startswith((".", "'")) else line)
    return "\n".join(lines)


def _man_date(header, /):
    if header.date is not Unset:
        return header.date.strftime("%b %Y")
    if epoch := os.environ.get("SOURCE_DATE_EPOCH"):
        moment = datetime.datetime.fromtimestamp(int(epoch), datetime.UTC)
    else:
        moment = datetime.datetime.now(datetime.UTC)
    return moment.strftime("%b %Y")


def _man_options(actions, /):
    lines = []
    for action in actions:
        if action.help == argparse.SUPPRESS:
            continue
        names = ", ".join(f"\\fB{_roff(option)}\\fP" for option in action.option_strings)
        if action.nargs == 0:
            names += "[=false]" if action.default is not True else "[=true]"
        elif action.default not in (None, "", [], ()):
            names += f'="{_roff(str(action.default))}"'
        lines.extend([".PP", names, "\t" + _roff(action.help or ""), ""])
    return lines


def generate_man(node, header, /):
    """Return the roff man page of node."""
    title = header.title or node.command_path.upper().replace(" ", "\\-")
    section = header.section or "1"
    dashed = node.command_path.replace(" ", "-")
    lines = [
        ".nh",
        f'.TH "{title}" "{section}" "{_man_date(header)}" "{header.source}" "{header.manual}"',
        "",
        ".SH NAME",
        f"{_roff(dashed)} \\- {_roff(node.short)}",
        "",
        ".SH SYNOPSIS",
        f"\\fB{_roff(node.use_line)}\\fP",
        "",
        ".SH DESCRIPTION",
        _roff(node.long or node.short),
        "",
    ]
    parsed = node._parsed
    if options := _man_options(parsed.local):
        lines.extend([".SH OPTIONS", *options])
    if options := _man_options(parsed.inherited):
        lines.extend([".SH OPTIONS INHERITED FROM PARENT COMMANDS", *options])
    related = []
    if node.parent is not None:
        related.append(node.parent.command_path.replace(" ", "-"))
    related.extend(child.command_path.replace(" ", "-") for child in node.children if child.available)
    if related:
        lines.extend([".SH SEE ALSO", ", ".join(f"\\fB{_roff(name)}({section})\\fP" for name in related), ""])
    return "\n".join(lines) + "\n"


def generate_man_tree(node, header, directory, /):
    """
    Write one man page per available command under node into directory.

    Files are named after the command path with dashes, e.g. "app-sub.1".
    """
    os.makedirs(directory, exist_ok=True)
    for child in node.children:
        if child.available:
            generate_man_tree(child, header, directory)
    basename = f"{node.command_path.replace(' ', '-')}.{header.section or '1'}"
    with open(os.path.join(directory, basename), "w", encoding="utf-8") as file:
        file.write(generate_man(node, header))


__all__ = (
    "COMPLETE_COMMAND",
    "COMPLETE_NO_DESC_COMMAND",
    "DIRECTIVE_DEFAULT",
    "DIRECTIVE_ERROR",
    "DIRECTIVE_NO_SPACE",
    "DIRECTIVE_NO_FILE_COMP",
    "CompletionOptions",
    "Node",
    "generate_bash_completion",
    "generate_fish_completion",
    "generate_powershell_completion",
    "generate_zsh_completion",
    "GENERATORS",
    "ManHeader",
    "generate_man",
    "generate_man_tree",
)
