"""Editor helpers: text diffs and workspace diagnostics."""

import difflib
from typing import List, Optional, Tuple

from assistant_gateway.core.envelope import Envelope, handle_request
from assistant_gateway.core.facade import SessionFacade
from assistant_gateway.core.schemas import EditorDiffRequest


def line_diff(original: str, modified: str) -> Tuple[str, int]:
    """Prefix every line with ' ', '-' or '+' and count the changed hunks.

    A replaced block counts as one removal plus one addition.
    """
    before = original.splitlines()
    after = modified.splitlines()
    lines: List[str] = []
    changes = 0
    matcher = difflib.SequenceMatcher(a=before, b=after, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            lines.extend(f" {line}" for line in before[i1:i2])
            continue
        if tag in ("replace", "delete"):
            lines.extend(f"-{line}" for line in before[i1:i2])
            changes += 1
        if tag in ("replace", "insert"):
            lines.extend(f"+{line}" for line in after[j1:j2])
            changes += 1
    return "\n".join(lines), changes


async def get_diff(request: EditorDiffRequest) -> Envelope:
    async def run():
        diff, changes = line_diff(request.original, request.modified)
        data = {"diff": diff, "changes": changes}
        if request.path:
            data["path"] = request.path
        return data

    return await handle_request(run)


async def get_diagnostics(
    facade: SessionFacade, path: Optional[str] = None, severity: Optional[str] = None
) -> Envelope:
    """Workspace diagnostics, filtered by path substring and exact severity."""

    async def run():
        diagnostics = await facade.get_diagnostics()
        matches = [
            d
            for d in diagnostics
            if (not path or path in d.path) and (not severity or d.severity == severity)
        ]
        return {
            "diagnostics": [
                d.model_dump(mode="json", by_alias=True, exclude_none=True) for d in matches
            ]
        }

    return await handle_request(run)
