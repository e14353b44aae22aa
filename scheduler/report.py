"""
Change report assembly.

Turns the two diff sequences into the notification text sent to the chat
channel, and splits long texts into deliverable chunks.
"""

import uuid
from typing import Iterable, List

from scheduler.diff import field_diff, order_diff
from scheduler.models import ChangeReport
from tracker.models import Snapshot

SCHEDULE_CHANGED_HEADER = "\n**Schedule changed!**\n"
ORDER_CHANGED_HEADER = "**Order Changed!**\n"


def assemble_report(field_lines: Iterable[str], order_lines: Iterable[str]) -> str:
    """
    Join field and order change lines into one text.

    Returns an empty string when neither sequence has lines.
    """
    field_block = "\n".join(field_lines)
    order_block = "\n".join(order_lines)

    output = ""
    if field_block:
        output += SCHEDULE_CHANGED_HEADER + field_block
    if order_block:
        output += ORDER_CHANGED_HEADER + order_block
    return output


def build_change_report(before: Snapshot, after: Snapshot) -> ChangeReport:
    """Diff two snapshots of the same event into a ChangeReport."""
    field_changes = list(field_diff(before.runs, after.runs))
    order_changes = list(order_diff(before.runs, after.runs))

    return ChangeReport(
        report_id=str(uuid.uuid4()),
        event=after.event,
        before_fetched_at=before.fetched_at,
        after_fetched_at=after.fetched_at,
        field_changes=field_changes,
        order_changes=order_changes,
        text=assemble_report(field_changes, order_changes),
    )


def split_message(text: str, limit: int = 2000) -> List[str]:
    """
    Split text into chunks of at most ``limit`` characters.

    Chunks break on newlines, so joining them with ``"\\n"`` gives the text
    back, blank lines included. A single line longer than the limit is cut
    into pieces and is the only place where that join adds newlines.
    """
    if limit < 1:
        raise ValueError("limit must be positive")
    if len(text) <= limit:
        return [text] if text else []

    chunks = []
    current = None
    for line in text.split("\n"):
        if len(line) > limit:
            if current is not None:
                chunks.append(current)
            pieces = [line[i:i + limit] for i in range(0, len(line), limit)]
            chunks.extend(pieces[:-1])
            current = pieces[-1]
            continue

        candidate = line if current is None else f"{current}\n{line}"
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate

    if current is not None:
        chunks.append(current)
    return chunks
