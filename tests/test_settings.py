"""Tests for tagger.settings — defaults, merging, validation, store swaps."""

from __future__ import annotations

import re

import pytest

import tagger.errors
import tagger.icons
import tagger.settings


class TestDefaults:
    def test_empty_config_uses_documented_defaults(self) -> None:
        s = tagger.settings.resolve({})
        assert s.update_on == "change"
        assert s.include == "**/*"
        assert s.exclude == "**/node_modules/*"
        assert s.go_to_behaviour == "end"
        assert s.status_bar == tagger.settings.StatusBarSpec(
            enabled=True, output="$(tag) {all}"
        )
        assert s.default_pattern.flags == "g"
        assert s.default_pattern.style == {}
        assert s.patterns == ()

    def test_empty_strings_fall_back(self) -> None:
        s = tagger.settings.resolve(
            {"updateOn": "", "include": "", "statusBar.output": ""}
        )
        assert s.update_on == "change"
        assert s.include == "**/*"
        assert s.status_bar.output == "$(tag) {all}"

    def test_values_are_used_when_present(self) -> None:
        s = tagger.settings.resolve(
            {
                "updateOn": "save",
                "exclude": "**/dist/**",
                "goToBehaviour": "start",
                "statusBar.output": "{todo}",
            }
        )
        assert s.update_on == "save"
        assert s.exclude == "**/dist/**"
        assert s.go_to_behaviour == "start"
        assert s.status_bar.output == "{todo}"

    def test_wrong_typed_scalar_falls_back(self, caplog: pytest.LogCaptureFixture) -> None:
        s = tagger.settings.resolve({"updateOn": 3})
        assert s.update_on == "change"
        assert "updateOn" in caplog.text


class TestStatusBarEnabled:
    def test_unset_means_enabled(self) -> None:
        assert tagger.settings.resolve({}).status_bar.enabled is True

    def test_explicit_false_is_respected(self) -> None:
        s = tagger.settings.resolve({"statusBar.enabled": False})
        assert s.status_bar.enabled is False

    def test_nested_false_is_respected(self) -> None:
        s = tagger.settings.resolve({"statusBar": {"enabled": False}})
        assert s.status_bar.enabled is False

    def test_non_bool_is_treated_as_unset(self) -> None:
        s = tagger.settings.resolve({"statusBar.enabled": "no"})
        assert s.status_bar.enabled is True


class TestRawConfigSnapshot:
    def test_flat_and_nested_keys(self) -> None:
        raw = tagger.settings.RawConfigSnapshot.from_mapping(
            {
                "updateOn": "save",
                "defaultPattern": {"flags": "gi", "style": {"color": "red"}},
            }
        )
        assert raw.update_on == "save"
        assert raw.default_flags == "gi"
        assert raw.default_style == {"color": "red"}
        assert raw.patterns is None

    def test_resolve_accepts_snapshot(self) -> None:
        raw = tagger.settings.RawConfigSnapshot(include="src/**")
        assert tagger.settings.resolve(raw).include == "src/**"


class TestPatternMerge:
    def test_defaults_apply_to_bare_pattern(self) -> None:
        s = tagger.settings.resolve(
            {
                "defaultPattern.flags": "gi",
                "defaultPattern.style": {"color": "red"},
                "patterns": [{"name": "todo", "pattern": "TODO"}],
            }
        )
        (p,) = s.patterns
        assert p.flags == "gi"
        assert p.style == {"color": "red"}
        assert p.regex.flags & re.IGNORECASE

    def test_pattern_style_overrides_default_keys(self) -> None:
        s = tagger.settings.resolve(
            {
                "defaultPattern.style": {"color": "red", "fontWeight": "bold"},
                "patterns": [
                    {"name": "todo", "pattern": "TODO", "style": {"color": "blue"}}
                ],
            }
        )
        assert s.patterns[0].style == {"color": "blue", "fontWeight": "bold"}

    def test_pattern_flags_win_over_default(self) -> None:
        s = tagger.settings.resolve(
            {
                "defaultPattern.flags": "gi",
                "patterns": [{"name": "todo", "pattern": "TODO", "flags": "m"}],
            }
        )
        p = s.patterns[0]
        assert p.flags == "m"
        assert p.global_match is False

    def test_empty_flags_use_default(self) -> None:
        s = tagger.settings.resolve(
            {"patterns": [{"name": "todo", "pattern": "TODO", "flags": ""}]}
        )
        assert s.patterns[0].flags == "g"
        assert s.patterns[0].global_match is True

    def test_declaration_order_is_kept(self, raw_config) -> None:
        s = tagger.settings.resolve(raw_config())
        assert [p.name for p in s.patterns] == ["todo", "fixme"]


class TestValidation:
    @pytest.mark.parametrize(
        "entry", [{"pattern": "TODO"}, {"name": "", "pattern": "TODO"}, "TODO"]
    )
    def test_missing_name(self, entry) -> None:
        with pytest.raises(tagger.errors.MissingField) as excinfo:
            tagger.settings.resolve({"patterns": [entry]})
        assert excinfo.value.field == "name"
        assert excinfo.value.index == 0

    def test_missing_pattern_names_the_entry(self) -> None:
        with pytest.raises(tagger.errors.MissingField) as excinfo:
            tagger.settings.resolve(
                {"patterns": [{"name": "ok", "pattern": "A"}, {"name": "todo"}]}
            )
        assert excinfo.value.field == "pattern"
        assert excinfo.value.index == 1
        assert "'todo'" in str(excinfo.value)

    def test_unbalanced_group_is_invalid(self) -> None:
        with pytest.raises(tagger.errors.InvalidPattern) as excinfo:
            tagger.settings.resolve({"patterns": [{"name": "broken", "pattern": "("}]})
        assert excinfo.value.name == "broken"
        assert "broken" in str(excinfo.value)

    def test_unsupported_flag_is_invalid(self) -> None:
        with pytest.raises(tagger.errors.InvalidPattern, match="unsupported flag"):
            tagger.settings.resolve(
                {"patterns": [{"name": "todo", "pattern": "TODO", "flags": "gy"}]}
            )

    def test_errors_are_config_errors(self) -> None:
        with pytest.raises(tagger.errors.ConfigError):
            tagger.settings.resolve({"patterns": [{}]})


class TestIndependence:
    def test_repeated_resolves_are_equal_but_not_shared(self) -> None:
        raw = {
            "defaultPattern.style": {"light": {"color": "black"}},
            "patterns": [{"name": "todo", "pattern": "TODO"}],
        }
        first = tagger.settings.resolve(raw)
        second = tagger.settings.resolve(raw)
        assert first == second
        assert first.patterns[0].style is not second.patterns[0].style
        assert (
            first.patterns[0].style["light"] is not second.patterns[0].style["light"]
        )

    def test_raw_input_is_not_mutated(self) -> None:
        default_style = {"color": "red"}
        raw = {
            "defaultPattern.style": default_style,
            "patterns": [{"name": "todo", "pattern": "TODO", "style": {"color": "blue"}}],
        }
        tagger.settings.resolve(raw)
        assert default_style == {"color": "red"}


class TestSettingsStore:
    def test_load_sets_current(self, raw_config) -> None:
        store = tagger.settings.SettingsStore(lambda: raw_config())
        assert store.current is None
        resolved = store.load()
        assert store.current is resolved
        assert len(resolved.patterns) == 2

    def test_failed_update_keeps_previous_settings(self, raw_config) -> None:
        raw = raw_config()
        store = tagger.settings.SettingsStore(lambda: raw)
        before = store.load()

        raw = raw_config({"patterns": [{"name": "", "pattern": "X"}]})
        with pytest.raises(tagger.errors.MissingField):
            store.update()
        assert store.current is before

    def test_successful_update_replaces_snapshot(self, raw_config) -> None:
        raw = raw_config()
        store = tagger.settings.SettingsStore(lambda: raw)
        before = store.load()

        raw = raw_config({"exclude": "**/build/*"})
        after = store.update()
        assert after is not before
        assert store.current.exclude == "**/build/*"
        assert before.exclude == "**/node_modules/*"

    def test_reset_hooks_run_only_on_success(self, raw_config) -> None:
        calls: list[str] = []
        raw = raw_config()
        store = tagger.settings.SettingsStore(
            lambda: raw, reset_hooks=[lambda: calls.append("reset")]
        )
        store.load()
        assert calls == ["reset"]

        raw = raw_config({"patterns": [{"name": "bad", "pattern": "("}]})
        with pytest.raises(tagger.errors.InvalidPattern):
            store.update()
        assert calls == ["reset"]

    def test_failing_reset_hook_keeps_new_snapshot(
        self, raw_config, caplog: pytest.LogCaptureFixture
    ) -> None:
        calls: list[str] = []

        def _broken() -> None:
            raise RuntimeError("cache gone")

        raw = raw_config()
        store = tagger.settings.SettingsStore(
            lambda: raw, reset_hooks=[_broken, lambda: calls.append("reset")]
        )
        resolved = store.load()
        assert store.current is resolved
        assert calls == ["reset"]
        assert "Reset hook" in caplog.text
        assert "cache gone" in caplog.text

    def test_icon_cache_cleared_on_update(self, raw_config) -> None:
        icons = tagger.icons.IconCache()
        store = tagger.settings.SettingsStore(lambda: raw_config())
        store.add_reset_hook(icons.reset)
        settings = store.load()
        icons.get(settings.patterns[0])
        assert len(icons) == 1
        store.update()
        assert len(icons) == 0
