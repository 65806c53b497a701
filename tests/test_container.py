"""Tests for container wiring."""

from stash_tracker.containers import build_container


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.settings is settings
    assert container.entry_service.cultivar_service is container.cultivar_service
    assert container.purchase_service.entry_service is container.entry_service
    assert container.purchase_service.changes is container.changes
    assert container.insights_service.top_limit == settings.top_cultivars_limit
    assert container.migration_service is not None
    assert container.auth_service is not None
