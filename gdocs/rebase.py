"""
Operation Script Rebasing

A compiled script addresses an empty body starting at index 1. To splice it
into an existing document at `insert_index`, every index-bearing field of
every operation is shifted by the same constant offset.

Rebasing is additive, so `shift_script(shift_script(s, k), -k) == s`.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from gdocs.operations import (
    DeleteRange,
    InsertTable,
    InsertText,
    OperationScript,
    SetBullets,
    SetParagraphStyle,
    SetTextStyle,
)

logger = logging.getLogger(__name__)


def rebase_operation(operation, offset: int):
    """
    Shift every index field of one operation by `offset`.

    InsertTable is returned unchanged: tables are inserted by the
    materialization pass against live document state, never by a compiled
    script. Any other type raises TypeError so a new operation kind cannot be
    passed through unshifted.
    """
    if isinstance(operation, InsertText):
        return replace(operation, index=operation.index + offset)
    if isinstance(operation, (SetTextStyle, SetParagraphStyle, SetBullets, DeleteRange)):
        return replace(operation, range=operation.range.shifted(offset))
    if isinstance(operation, InsertTable):
        return operation
    raise TypeError(f"Cannot rebase operation of type {type(operation).__name__}")


def shift_script(script: OperationScript, offset: int) -> OperationScript:
    """Return `script` with all operations, table placeholders and the cursor shifted by `offset`."""
    if offset == 0:
        return script
    return OperationScript(
        operations=tuple(rebase_operation(operation, offset) for operation in script.operations),
        cursor=script.cursor + offset,
        tables=tuple(replace(table, placeholder_range=table.placeholder_range.shifted(offset)) for table in script.tables),
        start_index=script.start_index + offset,
    )


def rebase(script: OperationScript, insert_index: int) -> OperationScript:
    """
    Move a script so its first insertion lands at `insert_index`.

    For a freshly compiled script (start index 1) the offset is
    `insert_index - 1`.
    """
    offset = insert_index - script.start_index
    logger.debug(f"Rebasing {len(script.operations)} operations from {script.start_index} to {insert_index}")
    return shift_script(script, offset)
