from __future__ import annotations

from typing import Any, Dict

import altair as alt

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.TopLevelMixin) -> Dict[str, Any]:
    """Convert an Altair chart (single or layered) into a JSON-serializable Vega-Lite dict."""
    return chart.to_dict()
