"""Tests for the legacy field backfill."""

from stash_tracker.domain.entries import PURCHASE_ARCHIVE


def test_backfill_rewrites_legacy_rows(
    migration_service, cultivar_repository, entry_repository, purchase_service, user_id
) -> None:
    strain = cultivar_repository.add_row(user_id, name="Runtz", name_lc="runtz")
    archive = entry_repository.add_row(
        user_id, time=1, method="Purchase", hidden_from_daily=True
    )
    hidden_session = entry_repository.add_row(
        user_id, time=2, method="Bong", hidden_from_daily=True
    )
    session = entry_repository.add_row(
        user_id, time=3, method="Pipe", strain_name="Gelato", brand="Farm A"
    )

    report = migration_service.backfill(user_id)

    assert (report.cultivars, report.archives, report.entries) == (1, 1, 1)
    assert cultivar_repository.rows[strain]["name_lower"] == "runtz"
    assert entry_repository.rows[archive]["journal_type"] == PURCHASE_ARCHIVE
    assert "journal_type" not in entry_repository.rows[hidden_session]
    assert entry_repository.rows[session]["strain_name_lower"] == "gelato"
    assert entry_repository.rows[session]["brand_lower"] == "farm a"
    assert [str(e.id) for e in purchase_service.list_archived(user_id)] == [archive]


def test_backfill_is_a_no_op_when_current(migration_service, user_id) -> None:
    report = migration_service.backfill(user_id)

    assert (report.cultivars, report.archives, report.entries) == (0, 0, 0)
