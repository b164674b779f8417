"""Unit tests for environment variable substitution and .env loading."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from ecsdeploy.config.env_loader import (
    get_env_var,
    load_env_file,
    substitute_env_vars,
)
from ecsdeploy.lib.errors import ConfigError, FileNotFoundError


@pytest.mark.unit
class TestSubstituteEnvVars:
    """Tests for substitute_env_vars."""

    def test_substitutes(self) -> None:
        """Test simple references are replaced."""
        assert substitute_env_vars("image: ${IMAGE}", {"IMAGE": "nginx"}) == (
            "image: nginx"
        )

    def test_default(self) -> None:
        """Test the default is used only when the variable is unset."""
        text = "tag: ${TAG:-latest}"

        assert substitute_env_vars(text, {}) == "tag: latest"
        assert substitute_env_vars(text, {"TAG": "v2"}) == "tag: v2"

    def test_empty_default(self) -> None:
        """Test an empty default is allowed."""
        assert substitute_env_vars("x${SUFFIX:-}", {}) == "x"

    def test_missing_raises(self) -> None:
        """Test an unset variable without default raises ConfigError."""
        with pytest.raises(ConfigError) as exc_info:
            substitute_env_vars("${NOPE}", {})

        assert exc_info.value.field == "NOPE"

    def test_plain_dollar_untouched(self) -> None:
        """Test text without the ${...} form is left alone."""
        assert substitute_env_vars("cost: $5 and $HOME", {}) == "cost: $5 and $HOME"


@pytest.mark.unit
class TestGetEnvVar:
    """Tests for get_env_var."""

    def test_reads_mapping(self) -> None:
        """Test lookup against an explicit mapping."""
        assert get_env_var("A", env={"A": "1"}) == "1"
        assert get_env_var("B", default="x", env={}) == "x"


@pytest.mark.unit
class TestLoadEnvFile:
    """Tests for load_env_file."""

    def test_loads_into_environ(self, temp_dir: Path, isolated_env: dict) -> None:
        """Test variables from the file reach os.environ."""
        envfile = temp_dir / ".env"
        envfile.write_text("ECSDEPLOY_TEST_IMAGE_TAG=v9\n")

        load_env_file(envfile)

        assert os.environ["ECSDEPLOY_TEST_IMAGE_TAG"] == "v9"

    def test_does_not_override_by_default(
        self, temp_dir: Path, isolated_env: dict
    ) -> None:
        """Test existing variables win unless override is requested."""
        os.environ["ECSDEPLOY_TEST_REGION"] = "from-shell"
        envfile = temp_dir / ".env"
        envfile.write_text("ECSDEPLOY_TEST_REGION=from-file\n")

        load_env_file(envfile)
        assert os.environ["ECSDEPLOY_TEST_REGION"] == "from-shell"

        load_env_file(envfile, override=True)
        assert os.environ["ECSDEPLOY_TEST_REGION"] == "from-file"

    def test_missing_file(self, temp_dir: Path) -> None:
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_env_file(temp_dir / "missing.env")
