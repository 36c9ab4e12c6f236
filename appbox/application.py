"""
appbox application entry points.

- run(context, container, function): call function(context, container) under
  interrupt handling; on failure print the message to the container's stderr
  and re-raise.
- main(context, function): run against the real process and exit with the
  code derived from the outcome (see faults.get_exit_code).

Example
    from appbox import background, main

    def hello(context, container):
        container.stdout.write("hello\\n")

    if __name__ == "__main__":
        main(background(), hello)
"""
import sys

from .containers import Container, os_container
from .faults import get_exit_code, print_error
from .interrupt import Context, handle


def run(context, container, function, /):
    """
    Run function with a context cancelled on SIGINT/SIGTERM.

    Raises
    - Whatever function raised, after printing its message to
      container.stderr.
    """
    if not isinstance(context, Context):
        raise TypeError("run() first argument must be a context")
    if not isinstance(container, Container):
        raise TypeError("run() second argument must be a container")
    if not callable(function):
        raise TypeError("run() third argument must be callable")
    with handle(context) as child:
        try:
            function(child, container)
        except Exception as error:
            print_error(container.stderr, error)
            raise


def main(context, function, /):
    """Run function against the operating system container and exit the process."""
    try:
        container = os_container()
    except Exception as error:
        print_error(sys.stderr, error)
        sys.exit(get_exit_code(error))
    try:
        run(context, container, function)
    except Exception as error:
        sys.exit(get_exit_code(error))
    sys.exit(0)


__all__ = (
    "run",
    "main",
)
