"""
appbox builder: compile Command descriptions into executable trees and run them.

Compilation (per command, recursively)
- The description is validated first; a single invalid command aborts the
  whole build before anything runs.
- Help goes to the container's stdout: short text, the long text when set,
  then the usage block.
- Leaf actions receive a container whose arguments are the positional
  arguments left after parsing. An InvalidArgumentError (anywhere in the
  __cause__ chain) prints the leaf's usage to stderr before propagating.
- Parent commands print their usage to stderr and raise
  SubCommandRequiredError or UnknownSubCommandError when no child matched.
  They also get a --help-tree flag listing every visible descendant.
- --version (when a version is set) prints the version and nothing else.
- The root of a tree with children gets `completion {bash,fish,powershell,zsh}`
  and a hidden `manpages <dir>` command.

Execution
- The first container argument (the program name) is dropped.
- Usage and notices go to stderr, except when completing (any argument
  starting with "__complete"), where shells only read stdout.
- Whatever the single executed handler raises propagates to the caller.
"""
import argparse
import functools

from . import containers
from .application import main
from .commands import Command, exact_args, no_args
from .faults import SubCommandRequiredError, UnknownSubCommandError, is_invalid_argument_error
from .tree import COMPLETE_COMMAND, GENERATORS, ManHeader, Node, generate_man_tree
from .utils import rpad, trim_right


def _max_padding(node, indent, /):
    padding = indent * 2 + len(node.name)
    for child in node.children:
        if not child.hidden:
            padding = max(padding, _max_padding(child, indent + 1))
    return padding


def _help_tree(node, padding, indent, lines, /):
    if node.hidden:
        return
    if node.name:
        lines.append(f"{rpad(' ' * (indent * 2) + node.name, padding)}  {node.short}\n")
    for child in node.children:
        _help_tree(child, padding, indent + 1, lines)


def help_tree_string(node, /):
    """
    Return the indented listing of node and its non-hidden descendants.

    Each line holds the name indented by two spaces per level, padded to the
    widest indented name, two spaces and the short description.
    """
    lines = []
    _help_tree(node, _max_padding(node, 0), 0, lines)
    return "".join(lines)


def _write_help(container, node, /):
    text = f"{node.short}\n\n"
    if node.long:
        text += f"{trim_right(node.long)}\n\n"
    if node.runnable or node.children:
        text += node.usage() + "\n"
    container.stdout.write(text)


def _write_usage(container, node, /):
    container.stderr.write(node.usage() + "\n")


def _leaf(context, container, function, /):
    def run(node, args):
        try:
            function(context, containers.args_container(container, *args))
        except Exception as error:
            if is_invalid_argument_error(error):
                _write_usage(container, node)
            raise
    return run


def _parent(container, /):
    def run(node, args):
        _write_usage(container, node)
        if not args:
            raise SubCommandRequiredError("Sub-command required.")
        raise UnknownSubCommandError(f"Unknown sub-command: {' '.join(args)}")
    return run


def _add_help_tree_flag(container, node, /):
    state = argparse.Namespace(help_tree=False)
    node.flags.add_argument("--help-tree", action="store_true", help="Print the entire sub-command tree", target=state)
    run = node.run

    def wrapper(node, args):
        if state.help_tree:
            container.stdout.write(help_tree_string(node))
            return
        run(node, args)

    node.run = wrapper


def _add_version_flag(container, node, version, /):
    state = argparse.Namespace(version=False)
    node.flags.add_argument("--version", action="store_true", help="Print the version", target=state)
    run = node.run

    def wrapper(node, args):
        if state.version:
            container.stdout.write(version + "\n")
            return
        run(node, args)

    node.run = wrapper


def _compile(context, container, command, /):
    if not isinstance(command, Command):
        raise TypeError("expected a command, got %s" % type(command).__name__)
    command.validate()
    node = Node(
        command.use,
        command.aliases,
        command.short.strip(),
        command.long.strip(),
        deprecated=command.deprecated,
        hidden=command.hidden,
        validator=command.args,
    )
    node.help_function = functools.partial(_write_help, container)
    if command.bind_flags is not None:
        command.bind_flags(node.flags)
    if command.bind_persistent_flags is not None:
        command.bind_persistent_flags(node.persistent_flags)
    if command.normalize_flag is not None:
        node.flags.set_normalize(command.normalize_flag)
    if command.normalize_persistent_flag is not None:
        node.persistent_flags.set_normalize(command.normalize_persistent_flag)
    if command.run is not None:
        node.run = _leaf(context, container, command.run)
    if command.sub_commands:
        node.run = _parent(container)
        for child in command.sub_commands:
            node.add(_compile(context, container, child))
        _add_help_tree_flag(container, node)
    if command.version:
        _add_version_flag(container, node, command.version)
    node.silence_errors = True
    return node


def _builtins(root, /):
    """Describe the completion and manpages commands of root."""

    def completion(generate):
        return lambda context, container: generate(root, container.stdout)

    def manpages(context, container):
        generate_man_tree(root, ManHeader(root.name.capitalize(), "1"), container.arg(0))

    return (
        Command(
            "completion",
            short="Generate auto-completion scripts for commonly used shells",
            sub_commands=[
                Command(
                    shell,
                    short=f"Generate auto-completion scripts for {shell}",
                    args=no_args,
                    run=completion(generate),
                )
                for shell, generate in GENERATORS.items()
            ],
        ),
        Command(
            "manpages",
            args=exact_args(1),
            hidden=True,
            run=manpages,
        ),
    )


def _modify(command, node, /):
    # Children first; every node is attached to the full tree by now.
    for child, child_node in zip(command.sub_commands, list(node.children)):
        _modify(child, child_node)
    if command.modify is not None:
        command.modify(node)


def build(context, container, command, /):
    """
    Compile command into an executable root node bound to container.

    Raises
    - InvalidCommandError if any command of the tree is invalid.
    """
    root = _compile(context, container, command)
    root.completion_options.disable_default_command = True
    if command.sub_commands:
        for extra in _builtins(root):
            root.add(_compile(context, container, extra))
    _modify(command, root)
    return root


def invoke(context, container, command, /):
    """
    Build command against container and execute it with the container's arguments.

    Raises
    - InvalidCommandError before anything runs when the tree is invalid.
    - UsageError when parsing or positional validation fails.
    - Whatever the executed handler raised.
    """
    root = build(context, container, command)
    args = containers.args(container)[1:]
    if any(arg.startswith(COMPLETE_COMMAND) for arg in args):
        root.set_out(container.stdout)
    else:
        root.set_out(container.stderr)
    root.set_args(args)
    root.set_err(container.stderr)
    root.set_in(container.stdin)
    root.execute()


def launch(context, command, /):
    """Invoke command against the operating system and exit the process."""
    main(context, lambda context, container: invoke(context, container, command))


__all__ = (
    "help_tree_string",
    "build",
    "invoke",
    "launch",
)
