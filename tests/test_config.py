import os

import pytest

from folio.config import Config
from folio.exceptions import ConfigurationError


def init_path(directory):
    """Config files are searched for relative to a module path within `directory`"""
    return os.path.join(str(directory), "__init__.py")


class TestDefaults:
    def test_default_values(self):
        config = Config.load_from_dict()

        assert config["env"] is None
        assert config["page_size"] == 20
        assert config["prefetch_pages"] == 4
        assert config["id_field"] == "id"
        assert config["cache"] == {"max_pages": 64, "ttl": None}
        assert config["executors"] == {"default": {"provider": "memory"}}
        assert config["logging"]["level"] == "INFO"
        assert config["custom"] == {}

    def test_values_are_merged_over_defaults(self):
        config = Config.load_from_dict({"page_size": 50, "cache": {"ttl": 30}})

        assert config["page_size"] == 50
        assert config["cache"] == {"max_pages": 64, "ttl": 30}

    def test_unknown_keys_are_ignored(self):
        config = Config.load_from_dict({"page_size": 50, "colour": "blue"})
        assert "colour" not in config

    def test_custom_values(self):
        config = Config.load_from_dict({"custom": {"DEFAULT_SORT": "name"}})
        assert config["custom"] == {"DEFAULT_SORT": "name"}

    def test_every_load_starts_from_fresh_defaults(self):
        first = Config.load_from_dict()
        first["cache"]["max_pages"] = 2

        assert Config.load_from_dict()["cache"]["max_pages"] == 64


class TestEnvironments:
    def test_environment_section_from_the_environment_variable(self, monkeypatch):
        monkeypatch.setenv("FOLIO_ENV", "production")
        config = Config.load_from_dict(
            {"page_size": 10, "production": {"page_size": 50, "cache": {"ttl": 60}}}
        )

        assert config["env"] == "production"
        assert config["page_size"] == 50
        assert config["cache"] == {"max_pages": 64, "ttl": 60}

    def test_environment_section_from_the_config(self):
        config = Config.load_from_dict({"env": "staging", "staging": {"prefetch_pages": 0}})

        assert config["env"] == "staging"
        assert config["prefetch_pages"] == 0

    def test_environment_variable_takes_precedence(self, monkeypatch):
        monkeypatch.setenv("FOLIO_ENV", "production")
        config = Config.load_from_dict(
            {
                "env": "staging",
                "staging": {"page_size": 5},
                "production": {"page_size": 50},
            }
        )

        assert config["page_size"] == 50

    def test_other_sections_are_ignored(self):
        config = Config.load_from_dict({"page_size": 10, "production": {"page_size": 50}})

        assert config["env"] is None
        assert config["page_size"] == 10


class TestEnvironmentVariables:
    def test_defaults_apply_when_unset(self, monkeypatch):
        monkeypatch.delenv("FOLIO_DATA_DIR", raising=False)
        config = Config.load_from_dict(
            {
                "executors": {
                    "default": {
                        "provider": "sqlite",
                        "database_uri": "sqlite:///${FOLIO_DATA_DIR|/tmp}/folio.db",
                    }
                }
            }
        )

        assert config["executors"]["default"]["database_uri"] == "sqlite:////tmp/folio.db"

    def test_values_are_substituted(self, monkeypatch):
        monkeypatch.setenv("FOLIO_DATA_DIR", "/data")
        monkeypatch.setenv("FOLIO_DB_NAME", "catalog")
        config = Config.load_from_dict(
            {
                "executors": {
                    "default": {
                        "provider": "sqlite",
                        "database_uri": "sqlite:///${FOLIO_DATA_DIR|/tmp}/${FOLIO_DB_NAME}.db",
                    }
                }
            }
        )

        assert config["executors"]["default"]["database_uri"] == "sqlite:////data/catalog.db"

    def test_values_in_lists_are_substituted(self, monkeypatch):
        monkeypatch.setenv("FOLIO_FIELD", "title")
        config = Config.load_from_dict({"custom": {"SEARCH_FIELDS": ["name", "${FOLIO_FIELD}"]}})

        assert config["custom"]["SEARCH_FIELDS"] == ["name", "title"]

    def test_missing_variables_without_defaults(self, monkeypatch):
        monkeypatch.delenv("FOLIO_MISSING", raising=False)

        with pytest.raises(ConfigurationError) as exc:
            Config.load_from_dict({"id_field": "${FOLIO_MISSING}"})

        assert "FOLIO_MISSING" in str(exc.value)


class TestValidation:
    @pytest.mark.parametrize(
        "config, field",
        [
            ({"page_size": 0}, "page_size"),
            ({"page_size": -5}, "page_size"),
            ({"page_size": "twenty"}, "page_size"),
            ({"prefetch_pages": -1}, "prefetch_pages"),
            ({"id_field": ""}, "id_field"),
            ({"cache": {"max_pages": 0}}, "cache"),
            ({"logging": {"level": "VERBOSE"}}, "logging"),
            ({"executors": {"archive": {"database_uri": "sqlite://"}}}, "executors"),
        ],
    )
    def test_invalid_values(self, config, field):
        with pytest.raises(ConfigurationError) as exc:
            Config.load_from_dict(config)

        assert field in exc.value.extra_info

    def test_all_results_is_a_valid_page_size(self):
        assert Config.load_from_dict({"page_size": -1})["page_size"] == -1


class TestConfigFiles:
    def test_folio_toml(self, tmp_path):
        (tmp_path / ".folio.toml").write_text("page_size = 15\n\n[cache]\nmax_pages = 8\n")

        config = Config.load_from_path(init_path(tmp_path))

        assert config["page_size"] == 15
        assert config["cache"]["max_pages"] == 8

    def test_pyproject_toml(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "catalog"\n\n[tool.folio]\npage_size = 30\n'
        )

        config = Config.load_from_path(init_path(tmp_path))

        assert config["page_size"] == 30
        assert "project" not in config

    def test_pyproject_without_a_folio_section(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "catalog"\n')

        assert Config.load_from_path(init_path(tmp_path))["page_size"] == 20

    def test_dedicated_files_take_precedence(self, tmp_path):
        (tmp_path / "pyproject.toml").write_text("[tool.folio]\npage_size = 30\n")
        (tmp_path / "folio.toml").write_text("page_size = 40\n")
        (tmp_path / ".folio.toml").write_text("page_size = 50\n")

        assert Config.load_from_path(init_path(tmp_path))["page_size"] == 50

    def test_parent_directories_are_searched(self, tmp_path):
        (tmp_path / "folio.toml").write_text("page_size = 40\n")
        nested = tmp_path / "src" / "catalog"
        nested.mkdir(parents=True)

        assert Config.find_config_file(init_path(nested)) == str(tmp_path / "folio.toml")

    def test_search_stops_after_two_parents(self, tmp_path):
        (tmp_path / "folio.toml").write_text("page_size = 40\n")
        nested = tmp_path / "src" / "catalog" / "models"
        nested.mkdir(parents=True)

        assert Config.find_config_file(init_path(nested)) is None

    def test_missing_files(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Config.load_from_path(init_path(tmp_path))

    def test_environment_sections_in_files(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FOLIO_ENV", "production")
        (tmp_path / ".folio.toml").write_text(
            "page_size = 15\n\n[production]\npage_size = 100\n"
        )

        config = Config.load_from_path(init_path(tmp_path))

        assert config["env"] == "production"
        assert config["page_size"] == 100
