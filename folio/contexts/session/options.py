"""
Session options: context creation, standalone font listing and PDF export.

Options are plain dataclasses. ContextOptions can also be loaded from a YAML
file, merged over the environment defaults with OmegaConf.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from folio.utils.settings import FOLIO_FONT_PATHS, FOLIO_IGNORE_SYSTEM_FONTS, FOLIO_ROOT


class PdfStandard(str, Enum):
    """PDF standards a serializer can be asked to conform to."""

    PDF_1_7 = "1.7"
    PDF_A_2B = "a-2b"
    PDF_A_3B = "a-3b"

    @property
    def is_archival(self) -> bool:
        return self in (PdfStandard.PDF_A_2B, PdfStandard.PDF_A_3B)

    @classmethod
    def parse(cls, value: Union[str, "PdfStandard"]) -> "PdfStandard":
        """
        Accept a member, its value ("a-2b") or its name in any case ("pdf_a_2b").

        Raises:
            ValueError: If value names no standard
        """
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text == member.value or text.upper() == member.name:
                return member
        choices = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown PDF standard '{value}' (expected one of: {choices})")


def validate_standards(standards: Iterable[Union[str, PdfStandard]]) -> Tuple[PdfStandard, ...]:
    """
    Build a compatible set of PDF standards, preserving first-seen order.

    Raises:
        ValueError: On unknown standards or when more than one PDF/A part is requested
    """
    resolved: List[PdfStandard] = []
    for value in standards:
        try:
            standard = PdfStandard.parse(value)
        except ValueError as e:
            raise ValueError(f"Invalid PDF standards: {e}") from e
        if standard not in resolved:
            resolved.append(standard)

    archival = [s.value for s in resolved if s.is_archival]
    if len(archival) > 1:
        raise ValueError(
            f"Invalid PDF standards: cannot conform to {' and '.join(archival)} at the same time"
        )
    return tuple(resolved)


@dataclass
class PdfOptions:
    """
    Options for PDF export.

    Attributes:
        pages: Page selector like "1-3,5,7-9" (1-indexed, inclusive)
        pdf_standards: Standards to conform to, e.g. [PdfStandard.PDF_A_2B]
        document_id: Stable identifier overriding the generated one
    """

    pages: Optional[str] = None
    pdf_standards: List[Union[str, PdfStandard]] = field(default_factory=list)
    document_id: Optional[str] = None


@dataclass
class FontOptions:
    """Options for standalone font operations."""

    font_paths: List[str] = field(default_factory=list)
    ignore_system_fonts: bool = False


@dataclass
class ContextOptions:
    """
    Options for creating a compilation context.

    Attributes:
        root: Project root for resolving file imports
        font_paths: Additional font directories
        ignore_system_fonts: Skip the platform font directories
    """

    root: str = "."
    font_paths: List[str] = field(default_factory=list)
    ignore_system_fonts: bool = False

    @classmethod
    def from_env(cls) -> "ContextOptions":
        """Defaults taken from FOLIO_ROOT, FOLIO_FONT_PATHS and FOLIO_IGNORE_SYSTEM_FONTS."""
        return cls(
            root=FOLIO_ROOT,
            font_paths=list(FOLIO_FONT_PATHS),
            ignore_system_fonts=FOLIO_IGNORE_SYSTEM_FONTS,
        )


def load_context_options(config_path: Optional[Path] = None) -> ContextOptions:
    """
    Load context options from a YAML file over the environment defaults.

    Args:
        config_path: YAML file with any of root, font_paths, ignore_system_fonts

    Returns:
        Merged ContextOptions

    Raises:
        ValueError: If the file has unknown keys or values of the wrong type

    Example:
        # context.yaml
        #   root: templates
        #   font_paths: [assets/fonts]
        options = load_context_options(Path("context.yaml"))
    """
    schema = OmegaConf.structured(ContextOptions.from_env())
    if config_path is None:
        return OmegaConf.to_object(schema)

    try:
        merged = OmegaConf.merge(schema, OmegaConf.load(config_path))
    except OmegaConfBaseException as e:
        raise ValueError(f"Invalid context options in {config_path}: {e}") from e
    return OmegaConf.to_object(merged)
