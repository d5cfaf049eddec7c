"""Text for Change records raised from a Problem."""

from alertbridge.tickets.domain.entities import Ticket


def build_change_summary(problem: Ticket) -> str:
    return f"Change Request for Problem: {problem.summary}"


def build_change_description(problem: Ticket) -> str:
    parts = [
        f"This change request was created to address Problem: {problem.key}",
        f"Problem Summary: {problem.summary}",
    ]
    if problem.description and problem.description.strip():
        parts.append(f"Problem Description:\n{problem.description}")
    parts.append(
        "Please review the linked problem for full details and implement the necessary changes."
    )
    return "\n\n".join(parts)
