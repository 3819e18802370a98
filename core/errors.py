"""Error taxonomy for depadd."""


class DepAddError(Exception):
    """Base class for all depadd errors."""

    stage = "manifest"


class ManifestError(DepAddError):
    """Raised before any write; the manifest is left untouched."""


class ManifestNotFound(ManifestError):
    pass


class ManifestNotReadable(ManifestError):
    pass


class ManifestNotWritable(ManifestError):
    pass


class MalformedRequirement(ManifestError):
    """A package token could not be parsed."""


class MalformedDocument(ManifestError):
    """The manifest could not be parsed as a JSON object."""


class PackageNotFound(ManifestError):
    """The registry has no stable release for a package."""


class RegistryUnavailable(ManifestError):
    """The registry could not be reached."""


class PatchRejected(DepAddError):
    """Internal signal from the patch scanner; always recovered by a rewrite."""


class ResolverFailed(DepAddError):
    """The installer could not be run."""

    stage = "resolver"
