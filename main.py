from appbox import *


class Options:
    def __init__(self):
        self.shout = False

    def bind(self, flag_set):
        flag_set.add_argument("--shout", action="store_true", help="Greet loudly", target=self)


options = Options()


def greet(context, container):
    text = f"hello {container.arg(0)}"
    container.stdout.write((text.upper() if options.shout else text) + "\n")


def fail(context, container):
    if container.num_args != 1:
        raise new_invalid_argument_error("fail takes the exit code")
    raise new_errorf(int(container.arg(0)), "failing with %s", container.arg(0))


app = Command(
    "demo",
    short="Demonstrate appbox",
    sub_commands=[
        Command("greet <name>", short="Say hello", args=exact_args(1), bind_flags=options.bind, run=greet),
        Command("fail <code>", short="Exit with a code", run=fail),
    ],
    version=__version__,
)


if __name__ == '__main__':
    launch(background(), app)
