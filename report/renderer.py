import logging
from typing import List, Union

from models import AnalysisDocument
from report.formats import LAYOUTS, AnalysisType, FormatLayout, parse_analysis_type
from report.fragments import FRAGMENTS

logger = logging.getLogger(__name__)


def _check_layouts() -> None:
    """Every analysis type needs a layout, and layouts may only name known fragments."""
    missing = [t.value for t in AnalysisType if t not in LAYOUTS]
    if missing:
        raise RuntimeError(f"no narrative layout for analysis types: {missing}")
    for t, layout in LAYOUTS.items():
        unknown = [f for f in layout.fragments if f not in FRAGMENTS]
        if unknown:
            raise RuntimeError(f"layout {t.value} uses unknown fragments: {unknown}")


_check_layouts()


def get_layout(analysis_type: Union[str, AnalysisType]) -> FormatLayout:
    if not isinstance(analysis_type, AnalysisType):
        analysis_type = parse_analysis_type(analysis_type)
    return LAYOUTS[analysis_type]


def render_narrative(doc: AnalysisDocument, analysis_type: Union[str, AnalysisType, None] = None) -> str:
    """Render the markdown narrative for one format (default: the document's own type)."""
    layout = get_layout(analysis_type or doc.analysis_type)
    blocks: List[str] = [f"# {layout.title}", layout.intro]
    for fragment_id in layout.fragments:
        lines = FRAGMENTS[fragment_id](doc, layout)
        if lines:
            blocks.append("\n".join(lines))
    logger.debug(f"Rendered {len(blocks) - 2} fragment(s) for {layout.title}")
    return "\n\n".join(blocks) + "\n"
