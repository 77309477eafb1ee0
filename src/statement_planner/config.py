"""Configuration loading and validation for the statement planner."""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

import yaml

from statement_planner.models.bank import BankProfile
from statement_planner.utils.logging_config import get_logger

logger = get_logger(__name__)


class ConfigError(Exception):
    """Exception raised for configuration errors."""

    pass


# Statement lines that are payments received, not spend
DEFAULT_PAYMENT_KEYWORDS = [
    "SU PAGO", "PAGO EN PESOS", "PAGO DE TARJETA", "PAGO DE T", "PAGO USD", "PAGO $", "PAGO CAJERO"
]
# Purchases whose text looks like a payment (paying a bill with the card)
DEFAULT_PAYMENT_EXCLUSIONS = [
    "PAGO MIS CUENTAS", "PAGO DE SERVICIOS", "PAGO SERVICIOS", "PAGO AFIP", "PAGO BANCO"
]
DEFAULT_REVERSAL_KEYWORD = "REVERSION"
DEFAULT_TAX_KEYWORDS = [
    "IVA", "IMPUESTO", "SELLOS", "PERCEPCION", "DB.RG", "MANTENIMIENTO",
    "COMISION", "ARCA", "IIBB", "TASA", "INT.",
]

TAX_ROLLUP_DETAIL = "Gastos de Tarjeta / Impuestos"


def _upper_list(values: object, default: list[str]) -> list[str]:
    if values is None:
        return list(default)
    if not isinstance(values, list):
        raise ConfigError(f"Expected a list of keywords, got {type(values).__name__}")
    return [str(v).upper() for v in values]


@dataclass
class KeywordConfig:
    """Keyword tables for payment and tax detection.

    Attributes:
        payment: Detail substrings that mark a payment received.
        payment_exclusions: Substrings that veto the payment match.
        reversal: Substring that marks a reversal (never a payment).
        tax: Detail substrings that mark card fees and taxes.
        bank_extras: Extra keywords per bank name, merged by for_bank().
    """

    payment: list[str] = field(default_factory=lambda: list(DEFAULT_PAYMENT_KEYWORDS))
    payment_exclusions: list[str] = field(default_factory=lambda: list(DEFAULT_PAYMENT_EXCLUSIONS))
    reversal: str = DEFAULT_REVERSAL_KEYWORD
    tax: list[str] = field(default_factory=lambda: list(DEFAULT_TAX_KEYWORDS))
    bank_extras: dict[str, dict[str, list[str]]] = field(default_factory=dict)

    def for_bank(self, bank_name: Optional[str]) -> "KeywordConfig":
        """Return the tables with a bank's extra keywords merged in.

        Extras apply when their key is a substring of the bank name, so
        "GALICIA" covers "Galicia Visa" and "Galicia Mastercard".

        Args:
            bank_name: Bank display name (matched case-insensitively).

        Returns:
            A new KeywordConfig; self when the bank has no extras.
        """
        if not bank_name or not self.bank_extras:
            return self
        upper = bank_name.upper()
        matched = [tables for key, tables in self.bank_extras.items() if key in upper]
        if not matched:
            return self
        merged = replace(self, bank_extras={})
        for extras in matched:
            merged.payment = merged.payment + extras.get("payment", [])
            merged.payment_exclusions = merged.payment_exclusions + extras.get("payment_exclusions", [])
            merged.tax = merged.tax + extras.get("tax", [])
        return merged

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "KeywordConfig":
        """Create from dictionary."""
        bank_extras: dict[str, dict[str, list[str]]] = {}
        raw_banks = data.get("banks") or {}
        if not isinstance(raw_banks, dict):
            raise ConfigError(f"'keywords.banks' must be a mapping, got {type(raw_banks).__name__}")
        for bank_name, tables in raw_banks.items():
            if not isinstance(tables, dict):
                raise ConfigError(f"Keyword extras for '{bank_name}' must be a mapping")
            bank_extras[str(bank_name).upper()] = {
                key: _upper_list(tables.get(key), [])
                for key in ("payment", "payment_exclusions", "tax")
            }

        return cls(
            payment=_upper_list(data.get("payment"), DEFAULT_PAYMENT_KEYWORDS),
            payment_exclusions=_upper_list(data.get("payment_exclusions"), DEFAULT_PAYMENT_EXCLUSIONS),
            reversal=str(data.get("reversal", DEFAULT_REVERSAL_KEYWORD)).upper(),
            tax=_upper_list(data.get("tax"), DEFAULT_TAX_KEYWORDS),
            bank_extras=bank_extras,
        )


@dataclass
class PlanRule:
    """A bank's named installment plan billed as a fixed-length series.

    Attributes:
        bank_match: Substring of the bank name the rule applies to.
        keyword: Plan keyword looked up in the plan code and detail.
        installment_total: Contractual number of installments.
        marker: Text appended to the detail when the keyword is missing.
    """

    bank_match: str
    keyword: str
    installment_total: int = 3
    marker: Optional[str] = None

    @property
    def marker_text(self) -> str:
        return self.marker or f"({self.keyword})"

    def applies_to(self, bank_name: Optional[str]) -> bool:
        """Check if the rule covers a bank."""
        return bool(bank_name) and self.bank_match.upper() in bank_name.upper()  # type: ignore[union-attr]

    def matches(self, text: Optional[str]) -> bool:
        """Check if a text mentions the plan keyword."""
        return bool(text) and self.keyword.upper() in text.upper()  # type: ignore[union-attr]

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "PlanRule":
        """Create from dictionary."""
        if "bank" not in data or "keyword" not in data:
            raise ConfigError("Plan rules need 'bank' and 'keyword'")
        total = int(data.get("installments", 3))  # type: ignore[arg-type]
        if total < 1:
            raise ConfigError(f"Plan rule installments must be positive, got {total}")
        return cls(
            bank_match=str(data["bank"]).upper(),
            keyword=str(data["keyword"]).upper(),
            installment_total=total,
            marker=str(data["marker"]) if data.get("marker") else None,
        )


DEFAULT_PLAN_RULES = [PlanRule(bank_match="NARANJA", keyword="ZETA", installment_total=3, marker="(ZETA)")]


@dataclass
class ProjectionConfig:
    """Configuration for period pickers.

    Attributes:
        horizon_months: How far ahead to look for future installments.
        balance_months: Future months offered by the balance view.
    """

    horizon_months: int = 36
    balance_months: int = 12

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "ProjectionConfig":
        """Create from dictionary."""
        return cls(
            horizon_months=int(data.get("horizon_months", 36)),  # type: ignore[arg-type]
            balance_months=int(data.get("balance_months", 12)),  # type: ignore[arg-type]
        )


@dataclass
class AIConfig:
    """Configuration for AI statement extraction.

    Attributes:
        api_key_env: Environment variable holding the API key.
        model: Model used for extraction.
        max_tokens: Maximum tokens for the response.
        timeout: Request timeout in seconds.
    """

    api_key_env: str = "ANTHROPIC_API_KEY"
    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 8192
    timeout: float = 120.0

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "AIConfig":
        """Create from dictionary."""
        return cls(
            api_key_env=str(data.get("api_key_env", "ANTHROPIC_API_KEY")),
            model=str(data.get("model", "claude-sonnet-4-5-20250929")),
            max_tokens=int(data.get("max_tokens", 8192)),  # type: ignore[arg-type]
            timeout=float(data.get("timeout", 120.0)),  # type: ignore[arg-type]
        )


@dataclass
class StorageConfig:
    """Location of the workbook holding transactions, banks and expenses."""

    workbook: str = "data/statements.xlsx"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "StorageConfig":
        """Create from dictionary."""
        return cls(workbook=str(data.get("workbook", "data/statements.xlsx")))


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file.
    """

    level: str = "INFO"
    file: str = "statement_planner.log"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Create from dictionary."""
        return cls(
            level=str(data.get("level", "INFO")),
            file=str(data.get("file", "statement_planner.log")),
        )


@dataclass
class Config:
    """Main configuration container.

    Attributes:
        keywords: Payment and tax keyword tables.
        plan_rules: Bank-specific named installment plans.
        projection: Period picker settings.
        ai: AI extraction settings.
        storage: Persistence settings.
        logging: Logging configuration.
        banks: Bank profiles seeded from banks.yaml.
    """

    keywords: KeywordConfig = field(default_factory=KeywordConfig)
    plan_rules: list[PlanRule] = field(default_factory=lambda: list(DEFAULT_PLAN_RULES))
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    banks: list[BankProfile] = field(default_factory=list)

    def plan_rule_for(self, bank_name: Optional[str]) -> Optional[PlanRule]:
        """Find the named-plan rule covering a bank, if any."""
        for rule in self.plan_rules:
            if rule.applies_to(bank_name):
                return rule
        return None


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content.

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the top level is not a mapping.
        yaml.YAMLError: If file is invalid YAML.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        content = yaml.safe_load(f)

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return content


def load_settings(path: Path, config: Config) -> None:
    """Load settings.yaml into an existing Config.

    Args:
        path: Path to settings.yaml.
        config: Config to update in place.
    """
    data = load_yaml_file(path)

    if data.get("keywords") is not None:
        config.keywords = KeywordConfig.from_dict(data["keywords"])  # type: ignore[arg-type]

    if data.get("plan_rules") is not None:
        rule_list = data["plan_rules"]
        if not isinstance(rule_list, list):
            raise ConfigError(f"'plan_rules' must be a list, got {type(rule_list).__name__}")
        config.plan_rules = [PlanRule.from_dict(r) for r in rule_list]

    if data.get("projection") is not None:
        config.projection = ProjectionConfig.from_dict(data["projection"])  # type: ignore[arg-type]

    if data.get("ai") is not None:
        config.ai = AIConfig.from_dict(data["ai"])  # type: ignore[arg-type]

    if data.get("storage") is not None:
        config.storage = StorageConfig.from_dict(data["storage"])  # type: ignore[arg-type]

    if data.get("logging") is not None:
        config.logging = LoggingConfig.from_dict(data["logging"])  # type: ignore[arg-type]


def load_banks(path: Path) -> list[BankProfile]:
    """Load bank profiles from banks.yaml.

    Args:
        path: Path to banks.yaml.

    Returns:
        List of bank profiles in file order.
    """
    data = load_yaml_file(path)

    banks: list[BankProfile] = []
    bank_list = data.get("banks")
    if bank_list is None:
        return banks
    if isinstance(bank_list, dict):
        # Dict format: banks: {id: {...}}
        for bank_id, bank_data in bank_list.items():
            bank_data = dict(bank_data or {})
            bank_data["id"] = bank_id
            banks.append(BankProfile.from_dict(bank_data))
    elif isinstance(bank_list, list):
        for bank_data in bank_list:
            banks.append(BankProfile.from_dict(bank_data))
    else:
        raise ConfigError(f"'banks' must be a list or mapping, got {type(bank_list).__name__}")

    return banks


def load_config(
    settings_path: Optional[Path] = None,
    banks_path: Optional[Path] = None,
    config_dir: Optional[Path] = None,
) -> Config:
    """Load complete configuration from all config files.

    Args:
        settings_path: Path to settings.yaml (or None to use default).
        banks_path: Path to banks.yaml (or None to use default).
        config_dir: Base config directory (default: ./config).

    Returns:
        Complete Config object.
    """
    if config_dir is None:
        config_dir = Path("config")

    if settings_path is None:
        settings_path = config_dir / "settings.yaml"
    if banks_path is None:
        banks_path = config_dir / "banks.yaml"

    config = Config()

    if settings_path.exists():
        load_settings(settings_path, config)
        logger.info(f"Loaded settings from {settings_path}")
    else:
        logger.warning(f"Settings file not found: {settings_path}, using defaults")

    if banks_path.exists():
        config.banks = load_banks(banks_path)
        logger.info(f"Loaded {len(config.banks)} bank profiles from {banks_path}")
    else:
        logger.warning(f"Banks file not found: {banks_path}")

    return config
