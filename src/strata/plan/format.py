"""Human-readable rendering of a plan's diff.

Output uses rich console markup; pass it through
:class:`strata.engine.ui.Colorize` to get ANSI colors or plain text.

Example output (plain)::

    + aws_instance.web
        ami:           "" => "ami-123"

    -/+ aws_instance.db (new resource required)
        size:          "small" => "large" (forces new resource)

    ~ aws_instance.cache
        tags.Name:     "a" => "b"

    - aws_instance.old
"""

from __future__ import annotations

from rich.markup import escape

from strata.plan.models import AttributeDiff, DiffChangeType, InstanceDiff, Plan

_SYMBOLS = {
    DiffChangeType.CREATE: ("green", "+"),
    DiffChangeType.DESTROY_CREATE: ("green", "-/+"),
    DiffChangeType.UPDATE: ("yellow", "~"),
    DiffChangeType.DESTROY: ("red", "-"),
}


def format_plan(plan: Plan) -> str:
    """Render every non-empty resource diff in alphabetical order."""
    if plan.diff.is_empty():
        return "This plan does nothing."

    blocks = []
    for address in sorted(plan.diff.resources):
        instance = plan.diff.resources[address]
        if instance.is_empty():
            continue
        blocks.append(_format_instance(address, instance))
    return "\n\n".join(blocks)


def _format_instance(address: str, instance: InstanceDiff) -> str:
    color, symbol = _SYMBOLS.get(instance.change_type, ("yellow", "~"))
    title = f"[{color}]{symbol} {escape(address)}[/{color}]"
    if instance.change_type is DiffChangeType.DESTROY_CREATE:
        title += " [red](new resource required)[/red]"

    lines = [title]
    if instance.change_type is not DiffChangeType.DESTROY and instance.attributes:
        width = max(len(name) for name in instance.attributes) + 2
        for name in sorted(instance.attributes):
            label = f"{name}:".ljust(width)
            lines.append(f"    {escape(label)} {_format_attribute(instance.attributes[name])}")
    return "\n".join(lines)


def _format_attribute(attr: AttributeDiff) -> str:
    if attr.sensitive:
        old, new = "<sensitive>", "<sensitive>"
    else:
        old, new = attr.old, attr.new
    if attr.new_computed:
        new = "<computed>"
    if attr.new_removed:
        new = ""

    text = f'"{escape(old)}" => "{escape(new)}"'
    if attr.requires_new:
        text += " [red](forces new resource)[/red]"
    return text
