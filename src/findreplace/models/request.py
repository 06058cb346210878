"""
Request data model for find-and-replace runs.

This module defines the immutable configuration for a single traversal,
including the find pattern, the replacement template, inclusion masks,
exclusion patterns and the processing flags.
"""

import codecs
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ReplacementSyntax(Enum):
    """Supported replacement template syntaxes."""
    PYTHON = "python"  # \1, \g<1>, \g<name>
    DOLLAR = "dollar"  # $1, ${name}, \$ for a literal dollar


def _split_list(v: Any) -> List[Any]:
    """Accept either a list or a comma-separated string."""
    if v is None:
        return []
    if isinstance(v, str):
        return [part.strip() for part in v.split(',') if part.strip()]
    return list(v)


def translate_dollar_template(template: str, group_count: int,
                              group_names: Optional[Dict[str, int]] = None) -> str:
    """
    Translate a dollar-style replacement template into Python ``re`` syntax.

    ``$n`` takes the longest run of digits that still names an existing group,
    ``${name}`` references a named group and a backslash makes the next
    character literal.

    Args:
        template: Replacement template using ``$`` group references
        group_count: Number of capture groups in the find pattern
        group_names: Mapping of named groups in the find pattern

    Returns:
        Equivalent template for ``re.sub``

    Raises:
        ValueError: If the template references a missing group or is malformed
    """
    group_names = group_names or {}
    out = []
    i = 0
    length = len(template)

    while i < length:
        ch = template[i]

        if ch == '\\':
            i += 1
            if i >= length:
                raise ValueError("Character to be escaped is missing")
            literal = template[i]
            out.append('\\\\' if literal == '\\' else literal)
            i += 1

        elif ch == '$':
            i += 1
            if i >= length:
                raise ValueError("Illegal group reference: group index is missing")

            if template[i] == '{':
                end = template.find('}', i)
                if end == -1:
                    raise ValueError("Named capturing group is missing trailing '}'")
                name = template[i + 1:end]
                if not name:
                    raise ValueError("Named capturing group has 0 length name")
                if name not in group_names:
                    raise ValueError(f"No group with name {{{name}}}")
                out.append(f'\\g<{name}>')
                i = end + 1

            elif template[i].isdigit():
                group = int(template[i])
                if group > group_count:
                    raise ValueError(f"No group {group}")
                i += 1
                while i < length and template[i].isdigit():
                    candidate = group * 10 + int(template[i])
                    if candidate > group_count:
                        break
                    group = candidate
                    i += 1
                out.append(f'\\g<{group}>')

            else:
                raise ValueError("Illegal group reference")

        else:
            out.append(ch)
            i += 1

    return ''.join(out)


class TraversalRequest(BaseModel):
    """
    Immutable configuration for one find-and-replace run.

    Attributes:
        base_dir: Directory whose children are processed
        recursive: Whether to descend into subdirectories
        find_regex: Compiled pattern whose matches are replaced
        replace_value: Replacement template (may reference capture groups)
        replacement_syntax: Syntax used by ``replace_value`` for group references
        file_masks: Literal filename suffixes that select files (empty = all)
        exclusions: Patterns that exclude any entry whose name they match
        process_file_contents: Whether to rewrite file contents
        process_filenames: Whether to rename files
        process_directory_names: Whether to rename directories
        replace_all: Replace every match (True) or only the first (False)
        encoding: Text encoding used to read and write file contents
        encoding_errors: Codec error handler for content decoding/encoding
        skip: Skip the run entirely
    """

    model_config = ConfigDict(frozen=True)

    base_dir: Path = Field(default_factory=Path.cwd, description="Root directory to process")
    recursive: bool = Field(False, description="Whether to descend into subdirectories")
    find_regex: re.Pattern = Field(..., description="Pattern whose matches are replaced")
    replace_value: str = Field("", description="Replacement template")
    replacement_syntax: ReplacementSyntax = Field(
        ReplacementSyntax.PYTHON,
        description="Syntax of group references in the replacement template"
    )
    file_masks: List[str] = Field(default_factory=list, description="Filename suffixes to include")
    exclusions: List[re.Pattern] = Field(default_factory=list, description="Name patterns to exclude")
    process_file_contents: bool = Field(False, description="Whether to rewrite file contents")
    process_filenames: bool = Field(False, description="Whether to rename files")
    process_directory_names: bool = Field(False, description="Whether to rename directories")
    replace_all: bool = Field(True, description="Replace every match instead of only the first")
    encoding: str = Field("utf-8", description="Text encoding for file contents")
    encoding_errors: str = Field("strict", description="Codec error handler")
    skip: bool = Field(False, description="Skip the run entirely")

    @field_validator('base_dir', mode='before')
    @classmethod
    def validate_base_dir(cls, v) -> Path:
        """Expand the user directory in the root path."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return Path.cwd()
        return Path(v).expanduser()

    @field_validator('find_regex', mode='before')
    @classmethod
    def validate_find_regex(cls, v) -> re.Pattern:
        """Compile the find pattern."""
        if isinstance(v, re.Pattern):
            return v
        if not isinstance(v, str) or not v:
            raise ValueError("Find regex must be a non-empty string")
        try:
            return re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid find regex '{v}': {e}")

    @field_validator('replace_value', mode='before')
    @classmethod
    def validate_replace_value(cls, v) -> str:
        """Treat a missing replacement as the empty string."""
        return "" if v is None else v

    @field_validator('replacement_syntax', mode='before')
    @classmethod
    def validate_replacement_syntax(cls, v) -> ReplacementSyntax:
        """Validate and convert the replacement syntax to an enum."""
        if isinstance(v, str):
            try:
                return ReplacementSyntax(v.lower())
            except ValueError:
                raise ValueError(f"Invalid replacement syntax: {v}")
        return v

    @field_validator('file_masks', mode='before')
    @classmethod
    def validate_file_masks(cls, v) -> List[str]:
        """Normalize file masks, dropping blank entries."""
        return [mask for mask in _split_list(v) if mask]

    @field_validator('exclusions', mode='before')
    @classmethod
    def validate_exclusions(cls, v) -> List[re.Pattern]:
        """Compile exclusion patterns, keeping their order."""
        compiled = []
        for pattern in _split_list(v):
            if isinstance(pattern, re.Pattern):
                compiled.append(pattern)
                continue
            try:
                compiled.append(re.compile(pattern))
            except re.error as e:
                raise ValueError(f"Invalid exclusion pattern '{pattern}': {e}")
        return compiled

    @field_validator('encoding')
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Make sure the encoding names a known codec."""
        try:
            return codecs.lookup(v).name
        except LookupError:
            raise ValueError(f"Unknown encoding: {v}")

    @field_validator('encoding_errors')
    @classmethod
    def validate_encoding_errors(cls, v: str) -> str:
        """Make sure the codec error handler is registered."""
        try:
            codecs.lookup_error(v)
        except LookupError:
            raise ValueError(f"Unknown encoding error handler: {v}")
        return v

    @model_validator(mode='after')
    def validate_replacement_template(self):
        """Check the replacement template against the find pattern."""
        try:
            template = self.replacement_template()
            # re parses the template before searching, so bad group
            # references fail even on empty input
            self.find_regex.sub(template, '')
        except (ValueError, re.error) as e:
            raise ValueError(f"Invalid replacement template '{self.replace_value}': {e}")
        return self

    def replacement_template(self) -> str:
        """Get the replacement in Python ``re`` template syntax."""
        if self.replacement_syntax is ReplacementSyntax.DOLLAR:
            return translate_dollar_template(
                self.replace_value,
                self.find_regex.groups,
                self.find_regex.groupindex
            )
        return self.replace_value

    def substitute(self, text: str) -> str:
        """Apply the replacement to ``text``, honoring ``replace_all``."""
        return self.find_regex.sub(
            self.replacement_template(), text, count=0 if self.replace_all else 1
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = self.model_dump()
        data['base_dir'] = str(self.base_dir)
        data['find_regex'] = self.find_regex.pattern
        data['exclusions'] = [p.pattern for p in self.exclusions]
        data['replacement_syntax'] = self.replacement_syntax.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TraversalRequest':
        """Create a request from dictionary representation."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation of the request."""
        targets = []
        if self.process_file_contents:
            targets.append("contents")
        if self.process_filenames:
            targets.append("filenames")
        if self.process_directory_names:
            targets.append("directory names")

        parts = [f"Base dir: {self.base_dir}"]
        parts.append(f"Find: {self.find_regex.pattern!r}")
        parts.append(f"Replace: {self.replace_value!r}")
        parts.append(f"Targets: {', '.join(targets) or 'none'}")
        parts.append(f"Recursive: {self.recursive}")
        return " | ".join(parts)


def build_request(find_regex: Union[str, re.Pattern], replace_value: Optional[str] = None,
                  **options: Any) -> TraversalRequest:
    """
    Convenience function to build a request.

    Args:
        find_regex: Pattern whose matches are replaced
        replace_value: Replacement template (None means empty)
        **options: Any other TraversalRequest field

    Returns:
        Validated TraversalRequest
    """
    return TraversalRequest(find_regex=find_regex, replace_value=replace_value, **options)
