"""Loading and saving the engine configuration as YAML."""

from pathlib import Path
from typing import Dict, Any, Optional

import yaml

from privacy_sentinel.models.config import EngineConfiguration
from privacy_sentinel.privacy.frameworks import framework_for_jurisdiction
from privacy_sentinel.core.interfaces import RegulatoryFramework


CONFIG_FILE_NAME = "engine.yaml"


class ConfigLoader:
    """Reads and writes ``engine.yaml`` in a configuration directory."""

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else Path.cwd() / ".privacy-sentinel"

    @property
    def config_file(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    def load_engine_config(self) -> EngineConfiguration:
        """Load the configuration, writing the defaults when no file exists yet."""
        if self.config_file.exists():
            with open(self.config_file, 'r') as f:
                config_data = yaml.safe_load(f) or {}
            if not isinstance(config_data, dict):
                raise ValueError(f"{self.config_file} must contain a mapping")
            return EngineConfiguration.from_dict(config_data)

        default_config = EngineConfiguration()
        self.save_engine_config(default_config)
        return default_config

    def save_engine_config(self, config: EngineConfiguration) -> Path:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, 'w') as f:
            yaml.dump(config.to_dict(), f, default_flow_style=False, indent=2, sort_keys=False)
        return self.config_file

    def validate_configuration(self) -> Dict[str, Any]:
        """Validate the configuration file and return validation results."""
        results = {
            "valid": True,
            "errors": [],
            "warnings": []
        }

        try:
            config = self.load_engine_config()
        except (ValueError, TypeError, yaml.YAMLError) as e:
            results["valid"] = False
            results["errors"].append(f"Engine config error: {e}")
            return results

        if config.operator_id == "0.0.0":
            results["warnings"].append("operator_id is the placeholder account 0.0.0")

        if framework_for_jurisdiction(config.default_jurisdiction) == RegulatoryFramework.DPDP \
                and config.default_jurisdiction.upper() != "IN":
            results["warnings"].append(
                f"default_jurisdiction {config.default_jurisdiction} falls back to the DPDP baseline"
            )

        return results
