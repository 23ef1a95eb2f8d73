"""Custom exceptions for the Fermi estimation tool.

Provides an exception hierarchy with error context, recovery suggestions,
and error classification. Only ``CircularDependencyError`` is fatal to a
simulation run; the other computation errors are recorded per trial.
"""

from typing import Optional, Dict, Any, List
from enum import Enum


class ErrorSeverity(Enum):
    """Error severity levels for categorizing exceptions."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(Enum):
    """Error categories for classification."""
    VALIDATION = "validation"
    COMPUTATION = "computation"
    IO = "io"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class FermiToolError(Exception):
    """Base exception for all fermi_tool errors.

    Provides structured error information with context, severity,
    and recovery suggestions.
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        recovery_suggestions: Optional[List[str]] = None,
        cause: Optional[Exception] = None
    ):
        """Initialize structured error.

        Args:
            message: Human-readable error description
            category: Error category for classification
            severity: Error severity level
            error_code: Unique error identifier
            context: Additional error context
            recovery_suggestions: List of recovery suggestions
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        self.cause = cause

    def _generate_error_code(self) -> str:
        """Generate error code from class name."""
        return f"FT_{self.__class__.__name__.upper()}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for structured logging."""
        return {
            'error_code': self.error_code,
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'context': self.context,
            'recovery_suggestions': self.recovery_suggestions,
            'exception_type': self.__class__.__name__,
            'cause': str(self.cause) if self.cause else None
        }


# Model validation errors
class ValidationError(FermiToolError):
    """Raised when a model or its variables fail validation."""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Any = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        context.update({
            'field_name': field_name,
            'field_value': field_value,
        })

        recovery_suggestions = kwargs.pop('recovery_suggestions', [
            "Check the variable records in the model file",
            "Verify each record has id, name, type and params",
        ])

        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            context=context,
            recovery_suggestions=recovery_suggestions,
            **kwargs
        )


class DuplicateVariableError(ValidationError):
    """Raised when two variables of one model share a name."""

    def __init__(self, name: str, **kwargs):
        self.name = name
        super().__init__(
            f"Duplicate variable name '{name}'",
            field_name='name',
            field_value=name,
            recovery_suggestions=[
                "Rename one of the variables",
                "Formulas reference variables by name, so names must be unique",
            ],
            **kwargs
        )


class DistributionParameterError(ValidationError):
    """Raised when distribution parameters are missing or invalid."""

    def __init__(
        self,
        message: str,
        distribution_type: str,
        parameter_name: Optional[str] = None,
        parameter_value: Any = None,
        **kwargs
    ):
        self.distribution_type = distribution_type
        self.parameter_name = parameter_name
        context = kwargs.pop('context', {})
        context.update({
            'distribution_type': distribution_type,
            'parameter_name': parameter_name,
            'parameter_value': parameter_value
        })

        recovery_suggestions = [
            f"Check the {parameter_name or 'parameters'} of the {distribution_type} variable",
            "PERT requires min < mode < max",
            "LogNormal requires 0 < low < high",
        ]

        super().__init__(
            message,
            field_name=parameter_name,
            field_value=parameter_value,
            context=context,
            recovery_suggestions=recovery_suggestions,
            **kwargs
        )


# Computation errors
class ComputationError(FermiToolError):
    """Raised when numerical computation fails."""

    def __init__(self, message: str, operation: str, **kwargs):
        context = kwargs.pop('context', {})
        context['operation'] = operation

        recovery_suggestions = kwargs.pop('recovery_suggestions', [
            "Check formula expressions for typos",
            "Verify parameters are within valid ranges",
        ])

        super().__init__(
            message,
            category=ErrorCategory.COMPUTATION,
            context=context,
            recovery_suggestions=recovery_suggestions,
            **kwargs
        )


class CircularDependencyError(ComputationError):
    """Raised when formulas reference each other in a cycle."""

    def __init__(self, variable: str, cycle: Optional[List[str]] = None, **kwargs):
        self.variable = variable
        self.cycle = list(cycle or [variable])
        context = kwargs.pop('context', {})
        context.update({'variable': variable, 'cycle': self.cycle})

        super().__init__(
            f"Circular dependency detected involving {variable}",
            operation="dependency_resolution",
            context=context,
            recovery_suggestions=[
                f"Cycle: {' -> '.join(self.cycle)}",
                "Break the cycle by replacing one formula with a distribution",
            ],
            severity=ErrorSeverity.HIGH,
            **kwargs
        )


class ExpressionError(ComputationError):
    """Raised when a formula cannot be parsed or evaluated."""

    def __init__(self, expression: str, reason: str, **kwargs):
        self.expression = expression
        self.reason = reason
        context = kwargs.pop('context', {})
        context.update({'expression': expression, 'reason': reason})

        super().__init__(
            f"Cannot evaluate '{expression}': {reason}",
            operation="expression_evaluation",
            context=context,
            severity=ErrorSeverity.LOW,
            **kwargs
        )


# I/O errors
class ModelIOError(FermiToolError):
    """Raised when reading or writing model and result files fails."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        operation: str = "unknown",
        **kwargs
    ):
        context = kwargs.pop('context', {})
        context.update({
            'file_path': file_path,
            'operation': operation
        })

        recovery_suggestions = kwargs.pop('recovery_suggestions', [
            "Check file path exists and is accessible",
            "Verify file permissions",
        ])

        super().__init__(
            message,
            category=ErrorCategory.IO,
            context=context,
            recovery_suggestions=recovery_suggestions,
            **kwargs
        )


class FileFormatError(ModelIOError):
    """Raised when file content is not in the expected format."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str],
        expected_format: str,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        context['expected_format'] = expected_format

        recovery_suggestions = [
            f"Ensure file is in {expected_format} format",
            "Check file is not corrupted",
        ]

        super().__init__(
            message,
            file_path=file_path,
            operation="format_detection",
            context=context,
            recovery_suggestions=recovery_suggestions,
            **kwargs
        )


# Configuration errors
class ConfigurationError(FermiToolError):
    """Raised when configuration is invalid."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Any = None,
        **kwargs
    ):
        context = kwargs.pop('context', {})
        context.update({
            'config_key': config_key,
            'config_value': config_value
        })

        recovery_suggestions = kwargs.pop('recovery_suggestions', [
            "Check configuration syntax and format",
            "Review configuration documentation",
        ])

        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            context=context,
            recovery_suggestions=recovery_suggestions,
            **kwargs
        )


class SimulationConfigError(ConfigurationError):
    """Raised when simulation configuration is invalid."""

    def __init__(self, message: str, **kwargs):
        recovery_suggestions = [
            "Ensure number of iterations is positive",
            "Check the output variable name exists in the model",
        ]

        super().__init__(
            message,
            recovery_suggestions=recovery_suggestions,
            **kwargs
        )


# Utility functions
def handle_exception(
    exception: Exception,
    logger,
    context: Optional[Dict[str, Any]] = None,
    reraise: bool = True
) -> Optional[FermiToolError]:
    """Handle exception with proper logging and conversion.

    Args:
        exception: Original exception
        logger: Logger instance
        context: Additional context information
        reraise: Whether to reraise the exception

    Returns:
        Converted FermiToolError if not reraising

    Raises:
        FermiToolError: If reraise is True
    """
    if isinstance(exception, FermiToolError):
        tool_error = exception
    else:
        tool_error = FermiToolError(
            str(exception),
            context=context,
            cause=exception
        )

    logger.error(
        f"{tool_error.error_code}: {tool_error.message}",
        extra={'error': tool_error.to_dict()},
        exc_info=tool_error.cause is not None
    )

    if reraise:
        raise tool_error
    return tool_error
