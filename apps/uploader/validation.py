import logging
from typing import List, Mapping, Optional, Union

from apps.uploader.models import FieldError, Transport, UploadPayload, ValidationResult
from apps.uploader.schema import MAX_FILE_SIZE, MIN_FILE_SIZE, UPLOAD_PAYLOAD_SCHEMA
from utils.exceptions import PayloadTooLarge, PayloadTooSmall

logger = logging.getLogger(__name__)

_PY_TYPES = {
    'string': str,
    'number': (int, float),
    'boolean': bool,
}


def build_upload_payload(
    name,
    size,
    cid,
    filecoin_url,
    user_id,
    is_selfie,
    height=None,
    width=None,
) -> UploadPayload:
    """Assemble the canonical payload. Nothing is validated here."""
    if not isinstance(user_id, str) or user_id == '':
        user_id = None
    return UploadPayload(
        name=name,
        size=size,
        cid=cid,
        filecoin_url=filecoin_url,
        is_selfie=is_selfie,
        user_id=user_id,
        height=height,
        width=width,
    )


def _is_type(value, type_name: str) -> bool:
    # bool is an int subclass but never a number here
    if type_name != 'boolean' and isinstance(value, bool):
        return False
    return isinstance(value, _PY_TYPES[type_name])


def _is_required(rule, transport: Transport) -> bool:
    if rule.field == 'user_id':
        return transport != Transport.JSON
    return rule.required


def validate_upload_payload(
    payload: Union[UploadPayload, Mapping],
    transport: Union[Transport, str] = Transport.STREAM,
) -> ValidationResult:
    """Check a payload against ``UPLOAD_PAYLOAD_SCHEMA``.

    Every field is checked in schema order and all applicable errors are
    collected; a field stops being checked after a missing-value or type
    error. ``user_id`` is optional for JSON uploads only.
    """
    transport = Transport(transport)
    if isinstance(payload, UploadPayload):
        payload = payload.to_dict()

    errors: List[FieldError] = []
    for rule in UPLOAD_PAYLOAD_SCHEMA:
        field = rule.field
        value = payload.get(field)
        required = _is_required(rule, transport)

        if required and (value is None or value == ''):
            suffix = f' for {transport.value} uploads' if field == 'user_id' else ''
            errors.append(FieldError(field, f'{field} is required{suffix}', value))
            continue

        if value is None:
            continue

        if not _is_type(value, rule.type):
            errors.append(FieldError(field, f'{field} must be a {rule.type}', type(value).__name__))
            continue

        if rule.type == 'string':
            errors.extend(_check_string(rule, value))
        elif rule.type == 'number':
            errors.extend(_check_number(rule, value))

    return ValidationResult(errors=errors)


def _check_string(rule, value: str) -> List[FieldError]:
    errors = []
    field = rule.field
    if rule.min_length and len(value) < rule.min_length:
        errors.append(FieldError(field, f'{field} must be at least {rule.min_length} characters long', len(value)))
    if rule.max_length and len(value) > rule.max_length:
        errors.append(FieldError(field, f'{field} must be no more than {rule.max_length} characters long', len(value)))
    if rule.pattern is not None and not rule.pattern.match(value):
        errors.append(FieldError(field, f'{field} format is invalid. {rule.description}', value))
    return errors


def _check_number(rule, value) -> List[FieldError]:
    errors = []
    field = rule.field
    if rule.min is not None and value < rule.min:
        errors.append(FieldError(field, f'{field} must be at least {rule.min}', value))
    if rule.max is not None and value > rule.max:
        errors.append(FieldError(field, f'{field} must be no more than {rule.max}', value))
    return errors


def check_file_size(size: int) -> None:
    if size < MIN_FILE_SIZE:
        raise PayloadTooSmall(f'File too small (minimum {MIN_FILE_SIZE} bytes required)')
    if size > MAX_FILE_SIZE:
        raise PayloadTooLarge('File too large (maximum 200MB allowed)')


def log_validation_result(result: ValidationResult, transport: Optional[Transport] = None) -> None:
    if result.valid:
        logger.info('Payload validation passed')
        return
    logger.error('Payload validation failed with %d error(s) for %s upload',
                 len(result.errors), transport.value if transport else 'unknown')
    for error in result.errors:
        logger.error('- %s: %s (received: %r)', error.field, error.message, error.received)
