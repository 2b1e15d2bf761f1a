"""
Test the logging sanitizer utility.
Sensitive values in command metadata and exception text must never reach the logs.
"""

from equiptrack.utils.logging_sanitizer import sanitize_dict, sanitize_exception_message, SENSITIVE_FIELDS


def test_sanitize_dict():
    """Test dictionary sanitization"""
    test_data = {
        'equipment_id': 4,
        'token': 'xyz789',
        'reason': 'Flat tyre',
    }
    result = sanitize_dict(test_data)
    assert result['equipment_id'] == 4, "equipment_id should not be redacted"
    assert result['token'] == '[REDACTED]', "token should be redacted"
    assert result['reason'] == 'Flat tyre', "reason should not be redacted"

    # Case insensitivity
    result = sanitize_dict({'Password': 'a', 'API_KEY': 'b'})
    assert result == {'Password': '[REDACTED]', 'API_KEY': '[REDACTED]'}

    # Nested dictionaries and lists of dictionaries
    result = sanitize_dict({
        'metadata': {'session_id': 'abc', 'severity': 'HIGH'},
        'attachments': [{'access_token': 'def'}, 'plain'],
    })
    assert result['metadata'] == {'session_id': '[REDACTED]', 'severity': 'HIGH'}
    assert result['attachments'] == [{'access_token': '[REDACTED]'}, 'plain']


def test_sanitize_dict_leaves_input_untouched():
    data = {'secret': 'value'}
    sanitize_dict(data, redact_text='***')
    assert data == {'secret': 'value'}
    assert sanitize_dict({}) == {}


def test_sanitize_exception_message():
    """Exception messages that mention sensitive fields are replaced"""
    assert sanitize_exception_message(ValueError("Equipment 4 not found")) == "Equipment 4 not found"
    message = sanitize_exception_message(RuntimeError("bad token abc123"))
    assert 'abc123' not in message
    assert message.startswith('RuntimeError')


def test_sensitive_fields_are_lowercase():
    assert all(field == field.lower() for field in SENSITIVE_FIELDS)
