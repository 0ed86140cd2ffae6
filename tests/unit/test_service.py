"""
Tests for SiblingLinkerService: scan triggers, notices, configuration
updates and debounced change handling.
"""

import pytest

from src.linking.notify import RecordingNotifier
from src.linking.scheduler import SchedulerState
from src.linking.service import CHANGE_NOTICE, SiblingLinkerService
from src.shared.config import LinkerConfig


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_service(store, timer_factory, notifier):
    def _make(config=None, **kwargs):
        return SiblingLinkerService(
            store,
            config or LinkerConfig(),
            notifier=notifier,
            timer_factory=timer_factory,
            **kwargs,
        )

    return _make


@pytest.fixture
def daily_note(write_note):
    write_note("people/Alice.md", "# Alice\n")
    write_note("people/Bob.md", "# Bob\n")
    return write_note("daily/2024-01-01.md", "Lunch with [[Alice]] and [[Bob]]\n")


class TestTriggers:
    def test_full_scan_reports_change_then_quiesces(self, make_service, store, daily_note):
        service = make_service()

        assert service.trigger_full_scan() is True
        assert service.trigger_full_scan() is False
        assert store.read_frontmatter("people/Alice.md")["mentions"] == ["[[Bob]]"]

    def test_scoped_scan(self, make_service, store, daily_note, write_note):
        write_note("daily/2024-01-02.md", "[[Alice]] and [[Carol]]\n")
        service = make_service()

        assert service.trigger_scoped_scan("daily/2024-01-01.md") is True
        assert service.last_result.scope == "daily/2024-01-01.md"
        assert store.read_frontmatter("people/Alice.md")["mentions"] == ["[[Bob]]"]

    def test_absolute_scope_is_normalized(self, make_service, vault, daily_note):
        service = make_service()

        result = service.scan(str(vault / "daily" / "2024-01-01.md"))

        assert result.scope == "daily/2024-01-01.md"
        assert result.changed is True

    def test_scope_outside_vault_is_a_failure(self, make_service, tmp_path):
        service = make_service()

        result = service.scan(str(tmp_path / "elsewhere" / "2024-01-01.md"))

        assert result.changed is False
        assert result.failures[0].stage == "read"

    def test_uses_real_resolver_by_default(self, make_service, store, daily_note):
        service = make_service()
        service.trigger_full_scan()

        assert store.read_frontmatter("people/Bob.md")["mentions"] == ["[[Alice]]"]


class TestNotices:
    def test_no_notice_unless_enabled(self, make_service, notifier, daily_note):
        make_service().trigger_full_scan()
        assert notifier.messages == []

    def test_change_notice(self, make_service, notifier, daily_note):
        service = make_service(LinkerConfig(notify_on_change=True))

        service.trigger_full_scan()
        service.trigger_full_scan()

        assert notifier.messages == [CHANGE_NOTICE]

    def test_configuration_error_notice(self, make_service, notifier, store, daily_note):
        service = make_service(LinkerConfig.model_construct(pattern="(unclosed"))

        assert service.trigger_full_scan() is False
        assert len(notifier.messages) == 1
        assert notifier.messages[0].startswith("Sibling linker configuration error")
        assert store.read_frontmatter("people/Alice.md") == {}

    def test_recovers_after_config_update(self, make_service, store, daily_note):
        service = make_service(LinkerConfig.model_construct(pattern="(unclosed"))
        assert service.trigger_full_scan() is False

        service.update_config(LinkerConfig())

        assert service.trigger_full_scan() is True


class TestConfigUpdates:
    def test_field_name_change_applies_to_next_scan(self, make_service, store, daily_note):
        service = make_service()
        service.trigger_full_scan()

        service.update_config(LinkerConfig(field_name="related"))
        assert service.trigger_full_scan() is True

        frontmatter = store.read_frontmatter("people/Alice.md")
        assert frontmatter["mentions"] == ["[[Bob]]"]
        assert frontmatter["related"] == ["[[Bob]]"]

    def test_debounce_change_applies_to_new_timers(self, make_service, timer_factory):
        service = make_service(LinkerConfig(debounce_seconds=1.0))
        service.update_config(LinkerConfig(debounce_seconds=5.0))

        service.on_document_changed("daily/2024-01-01.md")

        assert timer_factory.timers[-1].delay == 5.0
        assert service.config.debounce_seconds == 5.0


class TestChangeHandling:
    def test_change_schedules_scoped_scan(self, make_service, store, timer_factory, daily_note):
        service = make_service()

        assert service.on_document_changed("daily/2024-01-01.md") is True
        assert service.scheduler.state is SchedulerState.PENDING
        assert store.read_frontmatter("people/Alice.md") == {}

        timer_factory.timers[-1].fire()

        assert service.scheduler.state is SchedulerState.IDLE
        assert service.last_result.scope == "daily/2024-01-01.md"
        assert store.read_frontmatter("people/Alice.md")["mentions"] == ["[[Bob]]"]

    def test_burst_scans_latest_document_only(
        self, make_service, store, timer_factory, daily_note, write_note
    ):
        write_note("daily/2024-01-02.md", "[[Carol]] and [[Dave]]\n")
        write_note("Carol.md", "# Carol\n")
        write_note("Dave.md", "# Dave\n")
        service = make_service()

        service.on_document_changed("daily/2024-01-01.md")
        service.on_document_changed("daily/2024-01-02.md")
        for timer in timer_factory.timers:
            timer.fire()

        assert service.last_result.scope == "daily/2024-01-02.md"
        assert store.read_frontmatter("Carol.md")["mentions"] == ["[[Dave]]"]
        assert store.read_frontmatter("people/Alice.md") == {}

    def test_non_document_change_is_ignored(self, make_service, timer_factory):
        service = make_service()

        assert service.on_document_changed("attachments/photo.png") is False
        assert timer_factory.timers == []

    def test_stop_watching_drops_pending_scan(self, make_service, timer_factory, daily_note):
        service = make_service()
        service.on_document_changed("daily/2024-01-01.md")

        service.stop_watching()

        assert service.scheduler.state is SchedulerState.IDLE
        assert timer_factory.live == []
        assert service.last_result is None

    def test_extension_change_applies_to_scheduler_and_scans(
        self, make_service, store, timer_factory, write_note
    ):
        write_note("Alice.markdown", "# Alice\n")
        write_note("Bob.markdown", "# Bob\n")
        write_note("2024-01-01.markdown", "[[Alice]] and [[Bob]]\n")
        service = make_service()
        assert service.trigger_full_scan() is False

        service.update_config(LinkerConfig(extension="markdown"))

        assert store.extension == "markdown"
        assert service.on_document_changed("daily/2024-01-01.md") is False
        assert service.on_document_changed("2024-01-01.markdown") is True
        timer_factory.timers[-1].fire()
        assert store.read_frontmatter("Alice.markdown")["mentions"] == ["[[Bob]]"]

    def test_scope_escaping_vault_is_rejected(self, make_service, store, vault, daily_note):
        (vault.parent / "2024-09-09.md").write_text("[[Alice]] [[Bob]]\n", encoding="utf-8")
        service = make_service()

        result = service.scan("../2024-09-09.md")

        assert result.documents_scanned == 0
        assert [f.stage for f in result.failures] == ["read"]
        assert store.read_frontmatter("people/Alice.md") == {}
