from unittest.mock import patch

import pytest

from app.core.errors import ValidationError
from app.models.ad import (
    Ad,
    AdFormat,
    AdResult,
    AdStatus,
    AdTag,
    Angle,
    ElementResult,
    TagKind,
)
from app.models.learning import Learning, LearningType
from app.schemas.learning import LearningCreate
from app.services.learnings import (
    create_learning,
    extract_learning,
    learning_suggestions,
    list_learnings,
)


def _completed_ad(make_ad, **fields):
    defaults = {
        "status": AdStatus.COMPLETED,
        "hypothesis": "h",
        "angle": Angle.FEAR,
        "format": AdFormat.VIDEO,
        "result": AdResult.LOSER,
    }
    defaults.update(fields)
    return make_ad(**defaults)


# ── Extraction ────────────────────────────────────────────────────────────

class TestExtractLearning:

    def test_creates_learning_from_completed_ad(self, db, make_ad):
        ad = _completed_ad(make_ad, hook_result=ElementResult.FAILED, hook_note="Too slow to start")
        update = {"status": AdStatus.COMPLETED, "diagnosis": "Hook lost viewers in 2s"}

        learning = extract_learning(db, ad, update, save_learning=True)

        assert learning is not None
        assert learning.content == "Hook lost viewers in 2s"
        assert learning.type == LearningType.INSIGHT
        assert learning.ad_id == ad.id
        assert learning.angle == Angle.FEAR
        assert learning.format == AdFormat.VIDEO
        assert learning.result == AdResult.LOSER
        assert learning.hook_result == ElementResult.FAILED
        assert learning.hook_note == "Too slow to start"
        assert db.query(Learning).count() == 1

    @pytest.mark.parametrize(
        "update,save_learning",
        [
            ({"status": AdStatus.COMPLETED, "diagnosis": "d"}, False),
            ({"status": AdStatus.COMPLETED, "diagnosis": "   "}, True),
            ({"status": AdStatus.COMPLETED}, True),
            ({"status": AdStatus.ANALYSIS, "diagnosis": "d"}, True),
            ({"diagnosis": "d"}, True),
        ],
    )
    def test_skipped_unless_all_conditions_hold(self, db, make_ad, update, save_learning):
        ad = _completed_ad(make_ad)
        assert extract_learning(db, ad, update, save_learning) is None
        assert db.query(Learning).count() == 0

    def test_failure_is_swallowed(self, db, make_ad):
        ad = _completed_ad(make_ad)
        update = {"status": AdStatus.COMPLETED, "diagnosis": "d"}

        with patch.object(db, "commit", side_effect=RuntimeError("db down")):
            assert extract_learning(db, ad, update, save_learning=True) is None

    @patch("app.services.learnings.Learning", side_effect=RuntimeError("insert failed"))
    def test_completion_commits_when_learning_fails(self, _mock_learning, client, db, make_ad):
        ad = make_ad(status=AdStatus.ANALYSIS, hypothesis="h", angle=Angle.FEAR)

        response = client.patch(
            f"/api/ads/{ad.id}",
            json={"status": "completed", "result": "winner", "diagnosis": "X works", "saveLearning": True},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["closedAt"] is not None
        db.expire_all()
        stored = db.query(Ad).filter(Ad.id == ad.id).one()
        assert stored.status == AdStatus.COMPLETED
        assert stored.closed_at is not None
        assert db.query(Learning).count() == 0


# ── Listing / manual creation ─────────────────────────────────────────────

class TestListAndCreate:

    def test_manual_learning_requires_content(self, db):
        with pytest.raises(ValidationError):
            create_learning(db, LearningCreate(content="  "))

    def test_manual_learning_without_ad(self, db):
        learning = create_learning(db, LearningCreate(content="Offers underperform cold", type=LearningType.RULE))
        assert learning.ad_id is None
        assert learning.type == LearningType.RULE

    def test_filters(self, db):
        create_learning(db, LearningCreate(content="a", angle=Angle.FEAR, format=AdFormat.VIDEO))
        create_learning(db, LearningCreate(content="b", angle=Angle.OFFER, format=AdFormat.VIDEO))
        create_learning(db, LearningCreate(content="c", angle=Angle.FEAR, format=AdFormat.STATIC))

        assert {l.content for l in list_learnings(db, angle=Angle.FEAR)} == {"a", "c"}
        assert {l.content for l in list_learnings(db, angle=Angle.FEAR, format=AdFormat.VIDEO)} == {"a"}
        assert len(list_learnings(db)) == 3

    def test_endpoints(self, client):
        response = client.post("/api/learnings", json={"content": "UGC beats static", "format": "ugc"})
        assert response.status_code == 201
        assert response.json()["format"] == "ugc"

        response = client.get("/api/learnings", params={"format": "ugc"})
        assert response.status_code == 200
        assert [l["content"] for l in response.json()["learnings"]] == ["UGC beats static"]

    def test_blank_content_is_400(self, client):
        response = client.post("/api/learnings", json={"content": ""})
        assert response.status_code == 400


# ── Suggestions ───────────────────────────────────────────────────────────

class TestSuggestions:

    def test_insights_from_matching_completed_ads(self, db, make_ad):
        winner = _completed_ad(
            make_ad,
            result=AdResult.WINNER,
            hook_result=ElementResult.WORKED,
            hook_note="Question hook",
            cta_result=ElementResult.WORKED,
            cta_note="Shop now, 20% off",
        )
        loser = _completed_ad(
            make_ad,
            angle=Angle.OFFER,
            visual_result=ElementResult.FAILED,
            visual_note="Low contrast",
        )
        _completed_ad(make_ad, angle=Angle.DESIRE, format=AdFormat.STATIC, hook_result=ElementResult.WORKED, hook_note="unrelated")
        db.add_all([
            AdTag(ad_id=winner.id, kind=TagKind.SUCCESS_FACTOR, value="strong_hook"),
            AdTag(ad_id=loser.id, kind=TagKind.FAIL_REASON, value="poor_visual"),
            AdTag(ad_id=loser.id, kind=TagKind.FAIL_REASON, value="weak_cta"),
        ])
        db.commit()

        suggestions = learning_suggestions(db, angle=Angle.FEAR, format=AdFormat.VIDEO)

        assert suggestions.total_ads_analyzed == 2
        assert [i.note for i in suggestions.insights.working_hooks] == ["Question hook"]
        assert [i.note for i in suggestions.insights.working_ctas] == ["Shop now, 20% off"]
        assert [i.note for i in suggestions.insights.failed_visuals] == ["Low contrast"]
        assert {t.tag for t in suggestions.insights.top_fail_reasons} == {"poor_visual", "weak_cta"}
        assert [t.tag for t in suggestions.insights.top_success_factors] == ["strong_hook"]
        assert suggestions.filter_applied == {"angle": "fear", "format": "video"}

    def test_learnings_carry_source_ad_summary(self, db, make_ad):
        ad = _completed_ad(make_ad, name="fear_v1", result=AdResult.WINNER, spend=50.0, revenue=200.0, thumbnail_url="http://cdn.test/t.png")
        extract_learning(db, ad, {"status": AdStatus.COMPLETED, "diagnosis": "Fear hooks convert"}, save_learning=True)
        create_learning(db, LearningCreate(content="Manual note", angle=Angle.FEAR))

        suggestions = learning_suggestions(db, angle=Angle.FEAR)

        by_content = {l.content: l for l in suggestions.learnings}
        summary = by_content["Fear hooks convert"].ad
        assert summary.id == ad.id
        assert summary.name == "fear_v1"
        assert summary.result == AdResult.WINNER
        assert summary.thumbnail_url == "http://cdn.test/t.png"
        assert (summary.spend, summary.revenue) == (50.0, 200.0)
        assert by_content["Manual note"].ad is None

    def test_orphaned_learning_has_no_ad(self, client, db, make_ad):
        ad = _completed_ad(make_ad)
        extract_learning(db, ad, {"status": AdStatus.COMPLETED, "diagnosis": "Kept after delete"}, save_learning=True)
        assert client.delete(f"/api/ads/{ad.id}").status_code == 204

        response = client.get("/api/learnings/suggestions", params={"angle": "fear"})

        assert response.status_code == 200
        [learning] = response.json()["learnings"]
        assert learning["content"] == "Kept after delete"
        assert learning["ad"] is None

    def test_element_insights_capped_at_three(self, db, make_ad):
        for i in range(5):
            _completed_ad(make_ad, hook_result=ElementResult.FAILED, hook_note=f"hook {i}")

        suggestions = learning_suggestions(db, angle=Angle.FEAR)

        assert len(suggestions.insights.failed_hooks) == 3

    def test_ignores_unfinished_ads(self, db, make_ad):
        make_ad(status=AdStatus.ANALYSIS, angle=Angle.FEAR, hook_result=ElementResult.WORKED, hook_note="x")
        suggestions = learning_suggestions(db, angle=Angle.FEAR)
        assert suggestions.total_ads_analyzed == 0
        assert suggestions.insights.working_hooks == []

    def test_endpoint_uses_camel_case(self, client):
        response = client.get("/api/learnings/suggestions", params={"angle": "fear"})
        assert response.status_code == 200
        body = response.json()
        assert body["totalAdsAnalyzed"] == 0
        assert "workingHooks" in body["insights"]
        assert body["filterApplied"] == {"angle": "fear", "format": None}
