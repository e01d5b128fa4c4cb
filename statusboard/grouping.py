"""Partitioning of endpoint statuses into ordered, named groups."""

from collections.abc import Callable, Iterable

from .models import EndpointStatus, Group

# Name of the trailing group collecting endpoints without a group.
UNGROUPED = "undefined"


def is_unhealthy(status: EndpointStatus) -> bool:
    """Check whether the endpoint's most recent result failed."""
    return bool(status.results) and not status.results[-1].success


def group_endpoint_statuses(
    statuses: Iterable[EndpointStatus],
    collapsed: Callable[[str], bool] | None = None,
) -> list[Group]:
    """Group endpoint statuses by their group name.

    Groups appear in the order their first member appears in ``statuses``;
    members keep their input order. Endpoints without a group are collected
    into the ``UNGROUPED`` group, which is always last. An endpoint whose
    group is literally named ``UNGROUPED`` joins that same trailing group.

    Args:
        statuses: Flat list of endpoint statuses.
        collapsed: Optional lookup of a group's collapsed flag by name.

    Returns:
        Ordered list of groups.
    """
    by_name: dict[str, Group] = {}
    ungrouped: Group | None = None

    for status in statuses:
        if status.group and status.group != UNGROUPED:
            group = by_name.get(status.group)
            if group is None:
                group = by_name[status.group] = Group(name=status.group)
        else:
            if ungrouped is None:
                ungrouped = Group(name=UNGROUPED)
            group = ungrouped
        group.endpoints.append(status)
        if is_unhealthy(status):
            group.unhealthy_count += 1

    groups = list(by_name.values())
    if ungrouped is not None:
        groups.append(ungrouped)

    if collapsed is not None:
        for group in groups:
            group.collapsed = collapsed(group.name)
    return groups


def flatten_groups(groups: Iterable[Group]) -> list[EndpointStatus]:
    """Return every endpoint status in display order."""
    return [status for group in groups for status in group.endpoints]
