"""Client-local registry of unsaved comment drafts."""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from ..models.conversation import DiffSide
from .line_index import DiffLineIndex


@dataclass(frozen=True)
class DraftKey:
    """Anchor of a draft: (file_path, side, line_number)."""

    file_path: str
    side: DiffSide
    line_number: int

    def __post_init__(self):
        object.__setattr__(self, "side", DiffSide(self.side))

    @property
    def widget_key(self) -> str:
        return f"{self.file_path}-{self.side.value}-{self.line_number}"


@dataclass
class Draft:
    """An in-flight comment composition."""

    key: DraftKey
    text: str = ""
    code_line: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass
class DraftRegistry:
    """At most one draft per anchor, never shared and never persisted.

    The registry is bound to one review subject (attempt); switching subject
    drops every draft.
    """

    attempt_id: Optional[str] = None
    _drafts: Dict[DraftKey, Draft] = field(default_factory=dict)

    def set_draft(self, key: DraftKey, draft: Draft) -> None:
        if draft.key != key:
            draft = replace(draft, key=key)
        self._drafts[key] = draft

    def get_draft(self, key: DraftKey) -> Optional[Draft]:
        return self._drafts.get(key)

    def clear_draft(self, key: DraftKey) -> None:
        self._drafts.pop(key, None)

    def start_draft(self, key: DraftKey, line_index: Optional[DiffLineIndex] = None) -> Draft:
        """
        Open a draft at an anchor, snapshotting the code line once.

        An existing draft at the key is returned unchanged.
        """
        existing = self._drafts.get(key)
        if existing is not None:
            return existing

        code_line = None
        if line_index is not None:
            code_line = line_index.read_line(key.file_path, key.side, key.line_number)

        draft = Draft(key=key, code_line=code_line)
        self._drafts[key] = draft
        return draft

    def update_text(self, key: DraftKey, text: str) -> Draft:
        """Replace the text of a draft, creating an empty one if needed."""
        draft = self._drafts.get(key) or Draft(key=key)
        draft.text = text
        self._drafts[key] = draft
        return draft

    def drafts_for_file(self, file_path: str) -> List[Draft]:
        return [d for k, d in self._drafts.items() if k.file_path == file_path]

    def drop_file(self, file_path: str) -> None:
        """Drop drafts of a file whose diff was rebuilt; their snapshots are stale."""
        for key in [k for k in self._drafts if k.file_path == file_path]:
            del self._drafts[key]

    def switch_attempt(self, attempt_id: Optional[str]) -> None:
        """Bind the registry to another subject, dropping all drafts on change."""
        if attempt_id != self.attempt_id:
            self._drafts.clear()
        self.attempt_id = attempt_id

    def clear(self) -> None:
        self._drafts.clear()

    def __len__(self) -> int:
        return len(self._drafts)
