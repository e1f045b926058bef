import pytest

from core.data import VENDOR_FEED_PATH, load_vendors
from core.vendors import (
    ConformityCounts,
    DisciplineScores,
    MaterialManagementKPIs,
    OsdCounts,
    PlannedVsActual,
    PostAwardKPIs,
    PreAwardKPIs,
    Vendor,
)


def make_vendor(vendor_id="X001", name="Test Vendor", *, pre=None, post=None, material=None, **identity) -> Vendor:
    """Factory for a vendor; override KPI groups with plain dicts of field values."""
    defaults = {
        "category": "Manufacturing",
        "sub_category": "Parts",
        "activity": "Production",
        "bu": "BU 1",
        "project": "Project Alpha",
        "tiering": "Tier 1",
        "region": "Europe",
    }
    defaults.update(identity)
    material = dict(material or {})
    planned = material.pop("planned", 0)
    actual = material.pop("actual", 0)
    osd = material.pop("osd", {})
    conformity = material.pop("conformity", {})
    post = dict(post or {})
    disciplines = post.pop("discipline_scores", {})
    return Vendor(
        id=vendor_id,
        name=name,
        pre_award=PreAwardKPIs(**(pre or {})),
        post_award=PostAwardKPIs(discipline_scores=DisciplineScores(**disciplines), **post),
        material=MaterialManagementKPIs(
            planned_vs_actual=PlannedVsActual(planned=planned, actual=actual),
            osd=OsdCounts(**osd),
            conformity=ConformityCounts(**conformity),
            **material,
        ),
        **defaults,
    )


@pytest.fixture
def vendor_factory():
    return make_vendor


@pytest.fixture(scope="session")
def vendors():
    """The nine-vendor sample feed shipped under data/."""
    return load_vendors(VENDOR_FEED_PATH)


@pytest.fixture
def by_id(vendors):
    return {v.id: v for v in vendors}
