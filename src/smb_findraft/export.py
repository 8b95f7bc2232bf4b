# SMB FinDraft - Financial KPIs & MD&A drafting assistant for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Export helpers for the MD&A draft.

The draft is plain text. It can be written to a ``.txt`` file (UTF-8) or
copied to the system clipboard. Clipboard access depends on the desktop
environment (xclip/xsel, pbcopy, Windows APIs...) and may be unavailable;
such failures are logged and reported to the caller, never raised.
"""

import logging
from pathlib import Path
from typing import Union

from pandas.io.clipboard import clipboard_set

logger = logging.getLogger(__name__)

DRAFT_FILENAME = "mdna-draft.txt"
DRAFT_MIME_TYPE = "text/plain;charset=utf-8"


def export_draft(text: str, destination: Union[str, Path]) -> Path:
    """
    Write the draft text to a file.

    Args:
        text: Draft content.
        destination: Target file, or an existing directory in which
            ``mdna-draft.txt`` is created.

    Returns:
        The path of the written file.

    Raises:
        ValueError: if the draft is empty.
    """
    if not text:
        raise ValueError("Cannot export an empty draft.")

    path = Path(destination)
    if path.is_dir():
        path = path / DRAFT_FILENAME

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    logger.debug("Draft exported to %s (%d characters)", path, len(text))
    return path


def copy_to_clipboard(text: str) -> bool:
    """
    Copy the draft text to the system clipboard.

    Returns:
        True on success, False if the clipboard is not available.
    """
    if not text:
        return False

    try:
        clipboard_set(text)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Could not copy the draft to the clipboard: %s", exc)
        return False

    return True
