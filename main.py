from rich.pretty import pprint

from argosy import Parser


def remote(parser):
    parser.command(["add <name> <url>", "a"], "add a remote", {"fetch": {"alias": "f", "type": "boolean"}})
    parser.command("remove <name>", "remove a remote")


parser = (
    Parser("vcs")
    .option("verbose", {"alias": "v", "type": "boolean", "describe": "print more"})
    .command("clone <repository> [directory]", "clone a repository")
    .command("remote", "manage remotes", remote)
    .command(["log [paths..]", "*"], "show the history")
    .strict()
)


if __name__ == '__main__':
    pprint(parser.parse())
