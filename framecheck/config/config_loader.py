"""Configuration loader for framecheck"""

import yaml
from pathlib import Path
from typing import Any, Dict
import os


# config.yaml ships inside the package next to this module
CONFIG_DIR = Path(__file__).resolve().parent


class Config:
    """Configuration manager for framecheck"""
    
    def __init__(self, config_path: str = None):
        if config_path is None:
            config_path = os.getenv('FRAMECHECK_CONFIG')
        if config_path is None:
            env = os.getenv('FRAMECHECK_ENV', 'development')
            # Try environment-specific config first, fall back to default
            env_config = CONFIG_DIR / f"config.{env}.yaml"
            if env_config.exists():
                config_path = str(env_config)
            else:
                config_path = str(CONFIG_DIR / "config.yaml")
        
        self.config_path = Path(config_path)
        self._config = self._load_config()
    
    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file"""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")
        
        with open(self.config_path, 'r') as f:
            return yaml.safe_load(f) or {}
    
    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation
        
        Args:
            key: Configuration key in dot notation (e.g., 'tolerances.allowed_frame_rate_error')
            default: Default value if key not found
            
        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self._config
        
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        
        return value if value is not None else default
    
    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access"""
        return self.get(key)
    
    def validate(self) -> None:
        """Validate configuration values"""
        error = self.get('tolerances.allowed_frame_rate_error')
        if error is not None and not 0 < error <= 1:
            raise ValueError(f"Invalid allowed_frame_rate_error: {error}, must be in (0, 1]")
        
        for key in ('tolerances.long_interval_fraction', 'tolerances.min_fps_ratio'):
            ratio = self.get(key)
            if ratio is not None and not 0 < ratio <= 1:
                raise ValueError(f"Invalid {key}: {ratio}, must be in (0, 1]")
        
        for key in ('tolerances.audio_gap_factor', 'tolerances.long_interval_factor'):
            factor = self.get(key)
            if factor is not None and factor <= 0:
                raise ValueError(f"Invalid {key}: {factor}, must be positive")
        
        timeouts = self.get('scenarios.timeouts', {})
        for name, seconds in timeouts.items():
            if seconds <= 0:
                raise ValueError(f"Invalid timeout for {name}: {seconds}, must be positive")
        
        poll = self.get('gate.poll_interval')
        if poll is not None and poll < 0.01:
            raise ValueError(f"Invalid gate.poll_interval: {poll}, must be >= 0.01")


# Global config instance
config = Config()
