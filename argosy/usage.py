"""
Argosy help and version rendering (rich renderables).

Sections
- usage line: program name, command path and the matched definition
- description of the matched command
- "Commands:" listing from Registry.usage(), with [default] and [aliases: ...] markers
- option groups: custom groups first, then "Positionals:" and "Options:"; only
  settings that carry a description are listed

Palette keys (override through __styles__ in __main__)
- usage-label, program-name, usage-section, description-section
- group-label, command-name, option-name, positional-name, argument-description, annotation
"""
from collections import defaultdict

from rich.console import Group
from rich.table import Table
from rich.text import Text

from .utils import Unset, camelcase


def _palette():
    return defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",  # Neutral gray

        # === Groups / arguments ===
        "group-label": "bold #FFFFFF",  # Pure white headers
        "command-name": "bold #36C5F0",
        "option-name": "bold #00E6FF",
        "positional-name": "bold #FFD600",  # AMBER for positionals
        "argument-description": "#9CA3AF",  # Muted gray
        "annotation": "#737373",  # Dim gray markers
    } | getattr(__import__("__main__"), "__styles__", {}))


def _annotations(setting):
    annotations = []
    if setting.array:
        annotations.append("[array]")
    elif setting.type:
        annotations.append(f"[{setting.type}]")
    if setting.demand:
        annotations.append("[required]")
    if setting.choices:
        annotations.append("[choices: %s]" % ", ".join(map(repr, setting.choices)))
    if setting.default is not Unset:
        annotations.append(f"[default: {setting.default!r}]")
    return " ".join(annotations)


def _switches(key, setting):
    names = [key, *(alias for alias in setting.aliases if camelcase(alias) != camelcase(key))]
    return ", ".join(("-" if len(name) == 1 else "--") + name for name in sorted(names, key=len))


def usage_line(prog, entry, path, /, *, commands=False):
    """
    Return the usage text for entry reached through path (entry None is the root).
    """
    words = [prog]
    if entry is None:
        if commands:
            words.append("<command>")
    else:
        head, _, tail = entry.original.partition(" ")
        words += [*path[:-1], head] if path else []
        if tail:
            words.append(tail)
    return " ".join(words)


def render_help(configuration, registry, entry, path, prog, /, *, positionals=(), usage=None):
    """
    Build the help renderable for one scope.

    parameters
    - configuration: Configuration of the scope (option groups)
    - registry: Registry listed under "Commands:" (None or empty to skip)
    - entry, path: the matched command and the tokens that reached it
    - prog: program name
    - positionals: option keys bound positionally by entry
    - usage: custom root usage text; "$0" is replaced by prog
    """
    styles = _palette()
    renders = []

    if entry is None and usage:
        line = usage.replace("$0", prog)
    else:
        line = usage_line(prog, entry, path, commands=bool(registry))
    head = Text()
    head.append("usage", styles["usage-label"]).append(": ")
    if line.startswith(prog):
        head.append(prog, styles["program-name"]).append(line[len(prog):], styles["usage-section"])
    else:
        head.append(line, styles["usage-section"])
    renders.append(head)

    if entry is not None and isinstance(entry.descr, str) and entry.descr:
        renders.append(Text(entry.descr, styles["description-section"]))

    if registry and (listing := registry.usage()):
        table = Table.grid(padding=(0, 2))
        table.add_column(no_wrap=True)
        table.add_column()
        prefix = " ".join((prog, *path))
        for original, descr, default, aliases in listing:
            notes = [descr] if descr else []
            if default:
                notes.append("[default]")
            if aliases:
                notes.append("[aliases: %s]" % ", ".join(aliases))
            table.add_row(
                Text("  " + prefix + " " + original, styles["command-name"]),
                Text(" ".join(notes), styles["argument-description"]),
            )
        renders.append(Text(""))
        renders.append(Text("Commands:", styles["group-label"]))
        renders.append(table)

    groups = {}
    for key, setting in configuration.options.items():
        if not setting.descr:
            continue
        positional = setting.positional or key in positionals
        title = setting.group or ("Positionals:" if positional else "Options:")
        groups.setdefault(title, []).append((key, setting, positional))

    order = sorted(groups, key=lambda title: (title in ("Positionals:", "Options:"), title == "Options:"))
    for title in order:
        table = Table.grid(padding=(0, 2))
        table.add_column(no_wrap=True)
        table.add_column()
        table.add_column(no_wrap=True)
        for key, setting, positional in groups[title]:
            if positional:
                name = Text("  " + ", ".join((key, *setting.aliases)), styles["positional-name"])
            else:
                name = Text("  " + _switches(key, setting), styles["option-name"])
            table.add_row(
                name,
                Text(setting.descr, styles["argument-description"]),
                Text(_annotations(setting), styles["annotation"]),
            )
        renders.append(Text(""))
        renders.append(Text(title, styles["group-label"]))
        renders.append(table)

    return Group(*renders)


def render_version(value, /):
    return Text(str(value))


__all__ = (
    "usage_line",
    "render_help",
    "render_version",
)
