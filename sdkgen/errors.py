"""
Exception taxonomy for the sdkgen pipeline.

Fatal errors (the CLI exits non-zero):
- DescriptionReadError: the description document can't be read or parsed
- UnsupportedVersionError: STRICT fallback and no adapter supports the version
- AdapterDetectionError: either of the above, enriched with version/file/mode
- TemplateValidationError: required templates missing and no --force
- UnresolvableReferenceError: a $ref points to another file
- ChecksumMismatchError: the stored description checksum is stale
- DescriptionWriteError: restamping a description failed

EditConflictError signals a broken edit list inside the post-processing
pass; transforms catch it per file.
"""

from typing import List, Optional


class CodegenError(Exception):
    """Base class for every error raised by the pipeline."""


class DescriptionReadError(CodegenError):
    """The API description document could not be read or parsed."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot read API description {self.path}: {reason}")


class DescriptionWriteError(CodegenError):
    """An API description could not be written back to disk."""

    def __init__(self, path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot write API description {self.path}: {reason}")


class UnsupportedVersionError(CodegenError):
    """No registered adapter supports the version and STRICT mode forbids fallback."""

    def __init__(self, version: str, description_path: Optional[str], fallback_mode):
        self.version = version
        self.description_path = description_path
        self.fallback_mode = fallback_mode
        super().__init__(
            f"No generator explicitly supports OpenAPI {version}.\n"
            f"Options:\n"
            f"1. Set OPENAPI_ADAPTER_FALLBACK=warn or auto (or pass --fallback) to use a fallback\n"
            f"2. Register an adapter that supports this version\n"
            f"3. Downgrade the description to OpenAPI 3.0"
        )


class AdapterDetectionError(CodegenError):
    """Detection or selection failed; carries the context needed for a useful message."""

    def __init__(self, version: str, description_path: str, fallback_mode, reason: str):
        self.version = version
        self.description_path = str(description_path)
        self.fallback_mode = fallback_mode
        mode_value = getattr(fallback_mode, "value", fallback_mode)
        super().__init__(
            f"Failed to detect adapter for OpenAPI {version}: {reason}\n"
            f"File: {self.description_path}\n"
            f"Fallback mode: {mode_value}"
        )


class TemplateValidationError(CodegenError):
    """Required templates are missing from the template directory."""

    def __init__(self, template_dir, missing_templates: List[str]):
        self.template_dir = str(template_dir)
        self.missing_templates = list(missing_templates)
        super().__init__(
            f"Template validation failed for {self.template_dir}; "
            f"missing templates: {', '.join(self.missing_templates)}. "
            f"Use --force to generate anyway."
        )


class UnresolvableReferenceError(CodegenError):
    """A $ref points outside the description document."""

    def __init__(self, ref: str, description_path):
        self.ref = ref
        self.description_path = str(description_path)
        super().__init__(
            f"Cannot resolve $ref \"{ref}\" in {self.description_path}: "
            f"only local references (\"#/...\") are supported. "
            f"Bundle the description into a single file first."
        )


class EditConflictError(CodegenError):
    """A text edit overlaps another edit or no longer matches its recorded text."""


class ChecksumMismatchError(CodegenError):
    """The checksum stamped into a description no longer matches its content."""

    def __init__(self, description_path, stored: str, current: str):
        self.description_path = str(description_path)
        self.stored = stored
        self.current = current
        super().__init__(
            f"API description drift detected in {self.description_path}:\n"
            f"  stored:  {stored}\n"
            f"  current: {current}\n"
            f"Revert the description changes, or run `sdkgen verify --update` to restamp it."
        )
