"""Arena of MIME body parts linked by integer indices."""

from dataclasses import dataclass, field

ROOT_ID = -1


@dataclass
class BodyPart:
    """
    One node of a message body.

    Attributes:
        content: Transfer- and charset-decoded payload (empty for multipart containers)
        content_type: Lower-case MIME type, e.g. 'text/plain'
        info: Part header data (content-type parameters, disposition, ...)
        parent_id: Index of the enclosing part, ROOT_ID for the top level
    """

    content: bytes
    content_type: str
    info: dict[str, str]
    parent_id: int


@dataclass
class PartForest:
    """
    MIME part tree stored as a flat list plus child index lists.

    Parts are appended in the order they are encountered, so index 0 is the
    top-level content node. Children keep boundary appearance order.
    """

    parts: list[BodyPart] = field(default_factory=list)
    children: dict[int, list[int]] = field(default_factory=lambda: {ROOT_ID: []})

    def add_part(
        self,
        content: bytes,
        content_type: str,
        info: dict[str, str],
        parent_id: int = ROOT_ID,
    ) -> int:
        """
        Append a part and link it to its parent.

        Args:
            content: Decoded payload
            content_type: MIME type of the part
            info: Part header data
            parent_id: Index of an existing part, or ROOT_ID

        Returns:
            Index of the new part

        Raises:
            ValueError: If parent_id does not name an existing part
        """
        if parent_id != ROOT_ID and not 0 <= parent_id < len(self.parts):
            raise ValueError(f"Invalid parent part id: {parent_id}")

        part_id = len(self.parts)
        self.parts.append(BodyPart(content, content_type, dict(info), parent_id))
        self.children.setdefault(parent_id, []).append(part_id)
        self.children[part_id] = []
        return part_id

    def __len__(self) -> int:
        return len(self.parts)

    def child_ids(self, part_id: int) -> list[int]:
        return list(self.children.get(part_id, []))

    @property
    def contents(self) -> list[bytes]:
        return [part.content for part in self.parts]

    @property
    def types(self) -> list[str]:
        return [part.content_type for part in self.parts]

    @property
    def parent_ids(self) -> list[int]:
        return [part.parent_id for part in self.parts]
