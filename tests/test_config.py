"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from statement_planner.config import (
    ConfigError,
    KeywordConfig,
    load_banks,
    load_config,
)


def write_yaml(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_files(self, tmp_path: Path) -> None:
        """Test that a missing config directory gives defaults."""
        config = load_config(config_dir=tmp_path / "missing")
        assert config.banks == []
        assert config.plan_rule_for("Naranja X") is not None
        assert config.projection.horizon_months == 36
        assert "SU PAGO" in config.keywords.payment

    def test_settings_override(self, tmp_path: Path) -> None:
        """Test settings.yaml sections."""
        write_yaml(tmp_path / "settings.yaml", """
keywords:
  payment: [su pago]
  tax: [iva]
plan_rules:
  - bank: galicia
    keyword: cuota simple
    installments: 6
projection:
  horizon_months: 12
storage:
  workbook: /tmp/x.xlsx
""")
        config = load_config(config_dir=tmp_path)

        assert config.keywords.payment == ["SU PAGO"]
        assert config.keywords.tax == ["IVA"]
        assert config.keywords.payment_exclusions
        assert config.plan_rule_for("Naranja X") is None
        rule = config.plan_rule_for("Galicia Visa")
        assert rule is not None
        assert rule.installment_total == 6
        assert rule.marker_text == "(CUOTA SIMPLE)"
        assert config.projection.horizon_months == 12
        assert config.projection.balance_months == 12
        assert config.storage.workbook == "/tmp/x.xlsx"

    def test_banks_mapping_and_list(self, tmp_path: Path) -> None:
        """Test both banks.yaml layouts."""
        mapping = write_yaml(tmp_path / "a.yaml", """
banks:
  naranja_x:
    name: Naranja X
    columns: [Fecha, Importe]
""")
        listed = write_yaml(tmp_path / "b.yaml", """
banks:
  - name: Galicia Visa
    currencySymbol: U$S
""")
        (naranja,) = load_banks(mapping)
        assert naranja.id == "naranja_x"
        assert naranja.columns == ["Fecha", "Importe"]

        (galicia,) = load_banks(listed)
        assert galicia.id == "galicia_visa"
        assert galicia.currency_symbol == "U$S"

    def test_shipped_config(self) -> None:
        """Test that the repository config files load."""
        config = load_config(config_dir=Path(__file__).parent.parent / "config")
        assert {b.id for b in config.banks} == {"naranja_x", "galicia_visa"}
        assert "CARGO POR SERVICIO" in config.keywords.for_bank("Galicia Visa").tax

    @pytest.mark.parametrize(
        "content",
        [
            "- just a list",
            "plan_rules: {bank: naranja}",
            "plan_rules:\n  - keyword: zeta",
            "plan_rules:\n  - bank: naranja\n    keyword: zeta\n    installments: 0",
            "keywords:\n  payment: SU PAGO",
            "keywords:\n  banks: [galicia]",
        ],
    )
    def test_invalid_settings(self, tmp_path: Path, content: str) -> None:
        """Test that malformed settings raise ConfigError."""
        write_yaml(tmp_path / "settings.yaml", content)
        with pytest.raises(ConfigError):
            load_config(config_dir=tmp_path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """Test that broken YAML is reported."""
        write_yaml(tmp_path / "settings.yaml", "keywords: [unclosed")
        with pytest.raises(yaml.YAMLError):
            load_config(config_dir=tmp_path)


class TestKeywordConfig:
    """Tests for per-bank keyword extras."""

    def test_extras_merged_by_substring(self) -> None:
        """Test that extras keyed by part of the bank name apply."""
        keywords = KeywordConfig.from_dict({"banks": {"galicia": {"tax": ["cargo por servicio"]}}})

        merged = keywords.for_bank("Galicia Mastercard")
        assert "CARGO POR SERVICIO" in merged.tax
        assert "IVA" in merged.tax

    def test_unknown_bank_unchanged(self) -> None:
        """Test that banks without extras get the shared tables."""
        keywords = KeywordConfig.from_dict({"banks": {"galicia": {"tax": ["x"]}}})
        assert keywords.for_bank("Naranja X") is keywords
        assert keywords.for_bank(None) is keywords

    def test_shared_tables_not_mutated(self) -> None:
        """Test that merging does not leak extras into other banks."""
        keywords = KeywordConfig.from_dict({"banks": {"galicia": {"payment": ["debito"]}}})
        keywords.for_bank("Galicia Visa")
        assert "DEBITO" not in keywords.payment
