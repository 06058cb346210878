"""
YAML configuration parser for find-and-replace runs.

This module loads YAML configuration files, maps their keys onto
TraversalRequest fields (accepting the camelCase names used by the Maven
plugin configuration), validates them and reports problems with helpful
error messages.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from ..models.request import TraversalRequest


logger = logging.getLogger(__name__)


@dataclass
class ConfigParseResult:
    """
    Result of configuration parsing operation.

    Attributes:
        request: The parsed and validated request
        warnings: List of non-fatal warnings
        config_path: Path to the configuration file used
    """
    request: TraversalRequest
    warnings: List[str]
    config_path: Optional[Path]


class ConfigurationError(Exception):
    """Raised when configuration parsing or validation fails."""
    pass


class ConfigParser:
    """
    YAML configuration parser with validation and error handling.

    Handles loading YAML configuration files, normalizing key names, resolving
    the base directory and converting the result to a TraversalRequest.
    """

    DEFAULT_CONFIG_NAMES = [
        '.findreplace.yaml',
        '.findreplace.yml',
        'findreplace.yaml',
        'findreplace.yml'
    ]

    KEY_ALIASES = {
        'baseDir': 'base_dir',
        'findRegex': 'find_regex',
        'replaceValue': 'replace_value',
        'replacementSyntax': 'replacement_syntax',
        'fileMask': 'file_masks',
        'fileMasks': 'file_masks',
        'processFileContents': 'process_file_contents',
        'processFilenames': 'process_filenames',
        'processDirectoryNames': 'process_directory_names',
        'replaceAll': 'replace_all',
        'encodingErrors': 'encoding_errors'
    }

    def __init__(self, strict_mode: bool = False):
        """
        Initialize the configuration parser.

        Args:
            strict_mode: If True, treat warnings as errors
        """
        self.strict_mode = strict_mode
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def load_config(self, config_path: Optional[Union[str, Path]] = None) -> ConfigParseResult:
        """
        Load and parse configuration from file.

        Args:
            config_path: Path to configuration file. If None, searches the current directory.

        Returns:
            ConfigParseResult containing the request and metadata

        Raises:
            ConfigurationError: If configuration is invalid or no file can be read
        """
        try:
            if config_path:
                config_path = Path(config_path)
                if not config_path.exists():
                    raise ConfigurationError(f"Configuration file not found: {config_path}")
                config_data = self._load_yaml_file(config_path)
            else:
                config_path, config_data = self._find_and_load_config()
                if config_path is None:
                    raise ConfigurationError(
                        f"No configuration file found (looked for {', '.join(self.DEFAULT_CONFIG_NAMES)})"
                    )

            normalized, warnings = self._normalize_keys(config_data)
            normalized = self._resolve_base_dir(normalized, config_path)
            request = self._build_request(normalized)

            warnings.extend(self._get_request_warnings(request))

            if self.strict_mode and warnings:
                raise ConfigurationError(f"Configuration warnings in strict mode: {'; '.join(warnings)}")

            self.logger.info(f"Configuration loaded successfully from {config_path}")

            return ConfigParseResult(request=request, warnings=warnings, config_path=config_path)

        except Exception as e:
            if isinstance(e, ConfigurationError):
                raise
            else:
                raise ConfigurationError(f"Failed to load configuration: {e}") from e

    def _find_and_load_config(self) -> tuple[Optional[Path], Optional[Dict[str, Any]]]:
        """
        Find and load configuration file from the current directory.

        Returns:
            Tuple of (config_path, config_data) or (None, None) if not found
        """
        for config_name in self.DEFAULT_CONFIG_NAMES:
            config_file = Path.cwd() / config_name
            if config_file.exists() and config_file.is_file():
                self.logger.info(f"Found configuration file: {config_file}")
                return config_file, self._load_yaml_file(config_file)

        return None, None

    def _load_yaml_file(self, file_path: Path) -> Dict[str, Any]:
        """
        Load and parse YAML file.

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed YAML data as dictionary

        Raises:
            ConfigurationError: If file cannot be read or parsed
        """
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                content = f.read()

            if not content.strip():
                self.logger.warning(f"Configuration file is empty: {file_path}")
                return {}

            data = yaml.safe_load(content)

            if data is None:
                return {}

            if not isinstance(data, dict):
                raise ConfigurationError(f"Configuration file must contain a YAML object, got {type(data).__name__}")

            return data

        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {file_path}: {e}") from e
        except (OSError, IOError) as e:
            raise ConfigurationError(f"Cannot read configuration file {file_path}: {e}") from e

    def _normalize_keys(self, config_data: Dict[str, Any]) -> tuple[Dict[str, Any], List[str]]:
        """
        Map aliased keys to field names and drop unknown keys.

        Returns:
            Tuple of (normalized data, warnings about unknown or duplicate keys)
        """
        known_fields = set(TraversalRequest.model_fields)
        normalized: Dict[str, Any] = {}
        warnings = []

        for key, value in config_data.items():
            field_name = self.KEY_ALIASES.get(key, key)
            if field_name not in known_fields:
                warnings.append(f"Unknown configuration key ignored: {key}")
                continue
            if field_name in normalized:
                warnings.append(f"Configuration key '{key}' overrides an earlier value for '{field_name}'")
            normalized[field_name] = value

        return normalized, warnings

    def _resolve_base_dir(self, config_data: Dict[str, Any], config_path: Optional[Path]) -> Dict[str, Any]:
        """Resolve a relative base_dir against the configuration file's directory."""
        if config_path is None:
            return config_data

        base_dir = config_data.get('base_dir')
        if base_dir is None:
            base_dir = '.'

        base_path = Path(str(base_dir)).expanduser()
        if not base_path.is_absolute():
            base_path = config_path.parent / base_path

        resolved = config_data.copy()
        resolved['base_dir'] = base_path
        return resolved

    def _build_request(self, config_data: Dict[str, Any]) -> TraversalRequest:
        """
        Validate configuration data and build the request.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not config_data.get('find_regex'):
            raise ConfigurationError("Configuration validation failed: find_regex is required")

        try:
            return TraversalRequest.from_dict(config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

    def _get_request_warnings(self, request: TraversalRequest) -> List[str]:
        """
        Get warnings about settings that are valid but probably unintended.

        Args:
            request: The parsed request

        Returns:
            List of warning messages
        """
        warnings = []

        if not (request.process_file_contents or request.process_filenames or request.process_directory_names):
            warnings.append("Nothing to process: contents, filenames and directory names are all disabled")

        if not request.base_dir.is_dir():
            warnings.append(f"Base directory does not exist or is not a directory: {request.base_dir}")

        if request.process_directory_names and not request.recursive:
            warnings.append("Directory names are processed but recursion is disabled: only top-level directories are renamed")

        return warnings

    def save_config(self, request: TraversalRequest, output_path: Union[str, Path]) -> None:
        """
        Save a request to a YAML configuration file.

        Args:
            request: Request to save
            output_path: Path where to save the configuration

        Raises:
            ConfigurationError: If file cannot be written
        """
        try:
            output_path = Path(output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            yaml_content = self._generate_yaml_with_comments(request.to_dict())

            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(yaml_content)

            self.logger.info(f"Configuration saved to {output_path}")

        except (OSError, IOError) as e:
            raise ConfigurationError(f"Cannot write configuration file {output_path}: {e}") from e

    def _generate_yaml_with_comments(self, config_dict: Dict[str, Any]) -> str:
        """
        Generate YAML content with helpful comments.

        Args:
            config_dict: Configuration dictionary

        Returns:
            YAML content with comments
        """
        lines = [
            "# Find and Replace Configuration",
            "# Applies a regex find/replace to file contents and file or directory names",
            "",
        ]

        sections = [
            ("base_dir", "Directory to process (relative paths resolve against this file)"),
            ("recursive", "Descend into subdirectories"),
            ("find_regex", "Regular expression to find"),
            ("replace_value", "Replacement (may reference capture groups)"),
            ("replacement_syntax", "Group reference syntax: python (\\1, \\g<name>) or dollar ($1, ${name})"),
            ("file_masks", "Only process files whose names end with one of these suffixes (empty = all)"),
            ("exclusions", "Skip any entry whose name matches one of these regular expressions"),
            ("process_file_contents", "Rewrite file contents"),
            ("process_filenames", "Rename files"),
            ("process_directory_names", "Rename directories"),
            ("replace_all", "Replace every match (true) or only the first (false)"),
            ("encoding", "Text encoding of file contents"),
            ("encoding_errors", "Codec error handler (strict, replace, surrogateescape...)"),
            ("skip", "Skip the run entirely")
        ]

        for key, comment in sections:
            if key in config_dict:
                lines.append(f"# {comment}")
                section_yaml = yaml.dump({key: config_dict[key]},
                                         default_flow_style=False,
                                         sort_keys=False)
                lines.append(section_yaml.rstrip())
                lines.append("")

        return "\n".join(lines)

    def validate_config_file(self, config_path: Union[str, Path]) -> List[str]:
        """
        Validate a configuration file without running it.

        Args:
            config_path: Path to configuration file

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        try:
            config_path = Path(config_path)

            if not config_path.exists():
                errors.append(f"Configuration file not found: {config_path}")
                return errors

            config_data = self._load_yaml_file(config_path)
            normalized, _ = self._normalize_keys(config_data)
            normalized = self._resolve_base_dir(normalized, config_path)
            self._build_request(normalized)

        except ConfigurationError as e:
            errors.append(str(e))
        except Exception as e:
            errors.append(f"Unexpected error validating configuration: {e}")

        return errors

    def get_config_template(self) -> str:
        """
        Get a template configuration file with all options and comments.

        Returns:
            YAML template as string
        """
        template_config = {
            'base_dir': '.',
            'recursive': True,
            'find_regex': 'old_name',
            'replace_value': 'new_name',
            'replacement_syntax': 'python',
            'file_masks': ['.py', '.txt'],
            'exclusions': ['^\\.git$', '\\.bak$'],
            'process_file_contents': True,
            'process_filenames': False,
            'process_directory_names': False,
            'replace_all': True,
            'encoding': 'utf-8',
            'encoding_errors': 'strict',
            'skip': False
        }

        return self._generate_yaml_with_comments(template_config)


def load_config(config_path: Optional[Union[str, Path]] = None, strict_mode: bool = False) -> ConfigParseResult:
    """
    Convenience function to load configuration.

    Args:
        config_path: Path to configuration file (optional)
        strict_mode: Whether to treat warnings as errors

    Returns:
        ConfigParseResult containing the parsed request

    Raises:
        ConfigurationError: If configuration is invalid
    """
    parser = ConfigParser(strict_mode=strict_mode)
    return parser.load_config(config_path)


def validate_config_file(config_path: Union[str, Path]) -> List[str]:
    """
    Convenience function to validate a configuration file.

    Args:
        config_path: Path to configuration file

    Returns:
        List of validation errors (empty if valid)
    """
    parser = ConfigParser()
    return parser.validate_config_file(config_path)


def create_config_template(output_path: Union[str, Path]) -> None:
    """
    Create a template configuration file.

    Args:
        output_path: Where to save the template

    Raises:
        ConfigurationError: If template cannot be created
    """
    parser = ConfigParser()
    template_content = parser.get_config_template()

    try:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(template_content)

    except (OSError, IOError) as e:
        raise ConfigurationError(f"Cannot create template file {output_path}: {e}") from e
