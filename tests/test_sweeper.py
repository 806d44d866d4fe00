from datetime import timedelta

from app.core.transitions import utcnow
from app.models.ad import Ad, AdStatus
from app.services.sweeper import sweep_expired_ads


def _reload(db, ad_id):
    db.expire_all()
    return db.query(Ad).filter(Ad.id == ad_id).one()


def test_expired_testing_ad_moves_to_analysis(db, make_ad):
    now = utcnow()
    ad = make_ad(
        status=AdStatus.TESTING,
        hypothesis="h",
        is_locked=True,
        review_date=now - timedelta(hours=1),
    )

    result = sweep_expired_ads(db, now)

    assert result.moved == 1
    ad = _reload(db, ad.id)
    assert ad.status == AdStatus.ANALYSIS
    assert ad.is_locked is False


def test_active_lock_is_untouched(db, make_ad, locked_testing_fields):
    ad = make_ad(**locked_testing_fields)

    result = sweep_expired_ads(db)

    assert result.changed is False
    ad = _reload(db, ad.id)
    assert ad.status == AdStatus.TESTING
    assert ad.is_locked is True


def test_stray_lock_outside_testing_is_repaired(db, make_ad):
    ad = make_ad(status=AdStatus.PRODUCTION, hypothesis="h", is_locked=True)

    result = sweep_expired_ads(db)

    assert result.repaired == 1
    assert _reload(db, ad.id).is_locked is False


def test_testing_lock_without_review_date_is_repaired(db, make_ad):
    ad = make_ad(status=AdStatus.TESTING, hypothesis="h", is_locked=True, review_date=None)

    result = sweep_expired_ads(db, utcnow())

    assert result.moved == 0
    assert result.repaired == 1
    ad = _reload(db, ad.id)
    assert ad.status == AdStatus.TESTING
    assert ad.is_locked is False
    assert sweep_expired_ads(db, utcnow()).changed is False


def test_sweep_is_idempotent(db, make_ad):
    now = utcnow()
    make_ad(status=AdStatus.TESTING, hypothesis="h", is_locked=True, review_date=now - timedelta(days=1))

    first = sweep_expired_ads(db, now)
    second = sweep_expired_ads(db, now)

    assert first.moved == 1
    assert second.moved == 0
    assert second.repaired == 0


def test_testing_ad_without_review_date_stays(db, make_ad):
    ad = make_ad(status=AdStatus.TESTING, hypothesis="h", is_locked=False)

    sweep_expired_ads(db)

    assert _reload(db, ad.id).status == AdStatus.TESTING


def test_sweep_endpoint_reports_counts(client, make_ad):
    now = utcnow()
    make_ad(status=AdStatus.TESTING, hypothesis="h", is_locked=True, review_date=now - timedelta(days=1))
    make_ad(status=AdStatus.IDEA, is_locked=True)

    response = client.post("/api/maintenance/sweep")

    assert response.status_code == 200
    assert response.json() == {"moved": 1, "repaired": 1}
