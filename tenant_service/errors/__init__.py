"""Domain error values and their HTTP classification registry."""

from .registry import (
	DEFAULT_SENTINEL_CLASSIFICATIONS,
	ERROR_CLASSIFICATION_DEFAULT,
	ErrorClassification,
	ErrorClassificationRegistry,
	ErrorClassificationRegistryBuilder,
	errors_build_default_registry,
)
from .sentinels import (
	DomainError,
	DomainSentinelError,
	ErrorCode,
	ErrorKind,
	FileSentinel,
	OrganizationSentinel,
	SentinelError,
	errors_find_sentinel,
	errors_is,
)

__all__ = [
	"DEFAULT_SENTINEL_CLASSIFICATIONS",
	"ERROR_CLASSIFICATION_DEFAULT",
	"DomainError",
	"DomainSentinelError",
	"ErrorClassification",
	"ErrorClassificationRegistry",
	"ErrorClassificationRegistryBuilder",
	"ErrorCode",
	"ErrorKind",
	"FileSentinel",
	"OrganizationSentinel",
	"SentinelError",
	"errors_build_default_registry",
	"errors_find_sentinel",
	"errors_is",
]
