"""
Tests for requirement fulfillment: slot matching, greedy time-ordered
assignment, coverage across requirements and aggregate completion.
"""

from datetime import date, datetime, timedelta

from core.models import Angle, PhotoMetadata, Portfolio, PortfolioRequirement, Stage, StoredPhoto
from core.rules.engine import RequirementFulfillmentEngine, is_relevant, matches_slot

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

T0 = datetime(2026, 3, 1, 9, 0)


def _photo(
    photo_id: str,
    procedure: str | None = "Class 1",
    stage: str | None = "Preparation",
    angle: str | None = "Occlusal",
    minutes: int = 0,
    tooth: int | None = 14,
) -> StoredPhoto:
    return StoredPhoto(
        id=photo_id,
        metadata=PhotoMetadata(
            procedure=procedure,
            tooth_number=tooth,
            tooth_date=date(2026, 3, 1),
            stage=stage,
            angle=angle,
        ),
        captured_at=T0 + timedelta(minutes=minutes),
    )


def _class1_requirement() -> PortfolioRequirement:
    return PortfolioRequirement(
        procedure="Class 1",
        stages=["Preparation", "Restoration"],
        angles=["Occlusal", "Buccal/Facial"],
        angle_counts={"Occlusal": 2},
    )


def _slot(result, stage: Stage, angle: Angle):
    return next(s for s in result.slots if s.stage is stage and s.angle is angle)


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def test_matches_slot_requires_procedure_stage_and_angle():
    meta = PhotoMetadata(procedure="Class 1", stage="Preparation", angle="Occlusal")
    assert matches_slot(meta, "Class 1", Stage.PREPARATION, Angle.OCCLUSAL)
    assert not matches_slot(meta, "Crown", Stage.PREPARATION, Angle.OCCLUSAL)
    assert not matches_slot(meta, "Class 1", Stage.RESTORATION, Angle.OCCLUSAL)
    assert not matches_slot(meta, "Class 1", Stage.PREPARATION, Angle.LINGUAL)


def test_untagged_stage_never_fills_a_slot():
    meta = PhotoMetadata(procedure="Class 1", angle="Occlusal")
    assert not matches_slot(meta, "Class 1", Stage.PREPARATION, Angle.OCCLUSAL)


def test_relevance_tolerates_missing_stage_or_angle():
    req = _class1_requirement()
    assert is_relevant(PhotoMetadata(procedure="Class 1"), req)
    assert is_relevant(PhotoMetadata(procedure="Class 1", stage="Restoration"), req)
    assert not is_relevant(PhotoMetadata(procedure="Class 1", angle="Distal"), req)
    assert not is_relevant(PhotoMetadata(procedure="Crown"), req)


# ---------------------------------------------------------------------------
# Slot assignment
# ---------------------------------------------------------------------------


def test_surplus_photos_do_not_increase_satisfied_count():
    engine = RequirementFulfillmentEngine()
    photos = [_photo("p3", minutes=3), _photo("p1", minutes=1), _photo("p2", minutes=2)]

    result = engine.evaluate_requirement(_class1_requirement(), photos)

    slot = _slot(result, Stage.PREPARATION, Angle.OCCLUSAL)
    assert slot.required == 2
    assert slot.satisfied == 2
    assert slot.photo_ids == ["p1", "p2"]
    assert slot.surplus_ids == ["p3"]
    assert result.satisfied_count == 2
    assert result.total_required == 6
    for other in result.slots:
        if other is not slot:
            assert other.photo_ids == [] and other.surplus_ids == []


def test_slots_are_listed_stage_major():
    result = RequirementFulfillmentEngine().evaluate_requirement(_class1_requirement(), [])
    assert [(s.stage, s.angle) for s in result.slots] == [
        (Stage.PREPARATION, Angle.OCCLUSAL),
        (Stage.PREPARATION, Angle.BUCCAL_FACIAL),
        (Stage.RESTORATION, Angle.OCCLUSAL),
        (Stage.RESTORATION, Angle.BUCCAL_FACIAL),
    ]
    assert all(s.required == (2 if s.angle is Angle.OCCLUSAL else 1) for s in result.slots)


def test_equal_timestamps_keep_input_order():
    photos = [_photo("b"), _photo("a"), _photo("c")]
    result = RequirementFulfillmentEngine().evaluate_requirement(_class1_requirement(), photos)
    slot = _slot(result, Stage.PREPARATION, Angle.OCCLUSAL)
    assert slot.photo_ids == ["b", "a"]
    assert slot.surplus_ids == ["c"]


def test_duplicate_photo_ids_count_once():
    photo = _photo("p1")
    result = RequirementFulfillmentEngine().evaluate_requirement(_class1_requirement(), [photo, photo])
    assert _slot(result, Stage.PREPARATION, Angle.OCCLUSAL).photo_ids == ["p1"]
    assert result.satisfied_count == 1


def test_fully_covered_requirement():
    photos = [
        _photo("po1", minutes=1),
        _photo("po2", minutes=2),
        _photo("pb", angle="Buccal/Facial", minutes=3),
        _photo("ro1", stage="Restoration", minutes=4),
        _photo("ro2", stage="Restoration", minutes=5),
        _photo("rb", stage="Restoration", angle="Buccal/Facial", minutes=6),
        _photo("extra", stage="Restoration", angle="Buccal/Facial", minutes=7),
    ]
    engine = RequirementFulfillmentEngine()
    result = engine.evaluate_requirement(_class1_requirement(), photos)
    assert result.satisfied_count == 6
    assert result.is_fulfilled
    assert result.fraction == 1.0
    assert engine.is_requirement_fulfilled(_class1_requirement(), photos)


def test_empty_requirement_reports_complete():
    req = PortfolioRequirement("Crown", stages=[], angles=["Occlusal"])
    result = RequirementFulfillmentEngine().evaluate_requirement(req, [_photo("x", procedure="Crown")])
    assert result.total_required == 0
    assert result.satisfied_count == 0
    assert result.fraction == 1.0
    assert result.is_fulfilled


# ---------------------------------------------------------------------------
# Portfolio aggregate
# ---------------------------------------------------------------------------


def test_photos_cover_several_requirements_independently():
    first = PortfolioRequirement("Class 1", stages=["Preparation"], angles=["Occlusal"])
    second = PortfolioRequirement(
        "Class 1", stages=["Preparation"], angles=["Occlusal", "Lingual"]
    )
    portfolio = Portfolio(name="Restorative", requirements=[first, second])

    result = RequirementFulfillmentEngine().evaluate(portfolio, [_photo("p1")])

    assert result.for_requirement(first.id).satisfied_count == 1
    assert result.for_requirement(second.id).satisfied_count == 1
    assert result.satisfied_count == 2
    assert result.total_required == 3
    assert abs(result.completion_fraction - 2 / 3) < 1e-9
    assert result.for_requirement("unknown") is None


def test_portfolio_without_requirements_has_zero_fraction():
    result = RequirementFulfillmentEngine().evaluate(Portfolio(name="Empty"), [_photo("p1")])
    assert result.total_required == 0
    assert result.completion_fraction == 0.0


def test_other_procedures_are_ignored():
    portfolio = Portfolio(name="Final", requirements=[_class1_requirement()])
    result = RequirementFulfillmentEngine().evaluate(portfolio, [_photo("c", procedure="Crown")])
    assert result.satisfied_count == 0


def test_overall_completion_rate_averages_portfolios():
    half = Portfolio(
        name="Half",
        requirements=[PortfolioRequirement("Class 1", stages=["Preparation"], angles=["Occlusal", "Lingual"])],
    )
    done = Portfolio(
        name="Done",
        requirements=[PortfolioRequirement("Class 1", stages=["Preparation"], angles=["Occlusal"])],
    )
    empty = Portfolio(name="Empty")
    engine = RequirementFulfillmentEngine()

    assert engine.overall_completion_rate([half, done], [_photo("p1")]) == 75
    assert engine.overall_completion_rate([half, done, empty], [_photo("p1")]) == 50
    assert engine.overall_completion_rate([], [_photo("p1")]) == 0


# ---------------------------------------------------------------------------
# Browsing helpers
# ---------------------------------------------------------------------------


def test_matching_photos_and_grouping_by_requirement():
    class1 = _class1_requirement()
    crown = PortfolioRequirement("Crown", stages=["Restoration"], angles=["Occlusal"])
    veneer = PortfolioRequirement("Veneer", stages=["Restoration"], angles=["Occlusal"])
    portfolio = Portfolio(name="Final", requirements=[class1, crown, veneer])
    photos = [
        _photo("c1"),
        _photo("untagged", stage=None, angle=None),
        _photo("wrong-angle", angle="Distal"),
        _photo("cr", procedure="Crown", stage="Restoration"),
        _photo("bridge", procedure="Bridge"),
    ]
    engine = RequirementFulfillmentEngine()

    assert [p.id for p in engine.matching_photos(portfolio, photos)] == ["c1", "untagged", "cr"]

    grouped = engine.photos_by_requirement(portfolio, photos)
    assert [(r.procedure, [p.id for p in items]) for r, items in grouped] == [
        ("Class 1", ["c1", "untagged"]),
        ("Crown", ["cr"]),
    ]


def test_incomplete_photo_ids():
    photos = [_photo("ok"), _photo("no-tooth", tooth=None), _photo("no-angle", angle=None)]
    assert RequirementFulfillmentEngine.incomplete_photo_ids(photos) == ["no-tooth", "no-angle"]


def test_photo_count_per_procedure():
    photos = [_photo("a"), _photo("b", stage=None), _photo("c", procedure="Crown")]
    assert RequirementFulfillmentEngine.photo_count("Class 1", photos) == 2
    assert RequirementFulfillmentEngine.photo_count("Veneer", photos) == 0


def test_average_rating_ignores_unrated_photos():
    def rated(photo_id, rating):
        return StoredPhoto(
            id=photo_id,
            metadata=PhotoMetadata(procedure="Class 1", rating=rating),
            captured_at=T0,
        )

    photos = [rated("a", 4), rated("b", 5), rated("c", 0), rated("d", None)]
    assert RequirementFulfillmentEngine.average_rating(photos) == 4.5
    assert RequirementFulfillmentEngine.average_rating([rated("e", None)]) == 0.0
