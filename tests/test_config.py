import importlib
import warnings

from pydantic.warnings import PydanticDeprecatedSince20

import config.env
from config.env import EnvSettings


class TestEnvSettings:
    def test_reads_overrides_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOCATION_STALE_AFTER", "45")
        monkeypatch.setenv("NOTIFICATION_PUBLISH_TIMEOUT", "0.25")

        env = EnvSettings()

        assert env.LOCATION_STALE_AFTER == 45
        assert env.NOTIFICATION_PUBLISH_TIMEOUT == 0.25

    def test_names_are_case_sensitive(self, monkeypatch):
        monkeypatch.setenv("location_stale_after", "45")

        assert EnvSettings().LOCATION_STALE_AFTER == 30

    def test_unrelated_variables_are_ignored(self, monkeypatch):
        monkeypatch.setenv("SOMETHING_ELSE", "x")

        assert not hasattr(EnvSettings(), "SOMETHING_ELSE")

    def test_defined_without_deprecated_config(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", PydanticDeprecatedSince20)
            importlib.reload(config.env)
