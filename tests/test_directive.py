from brain_orchestrator.directive import (
    DirectiveFound,
    DirectiveMalformed,
    DirectiveNotFound,
    extract_directive,
    strip_directive,
)


def test_extract_directive_returns_payload_and_span():
    text = '결과: [UPDATE_CONTENT: {"copy":"NEW"}] 감사합니다'
    result = extract_directive(text)

    assert isinstance(result, DirectiveFound)
    assert result.payload == {"copy": "NEW"}
    assert text[result.start:result.end] == '[UPDATE_CONTENT: {"copy":"NEW"}]'
    assert strip_directive(text, result) == "결과: 감사합니다"


def test_extract_directive_handles_nested_braces_and_brackets_in_strings():
    text = '[UPDATE_CONTENT: {"copy": "a ] b } c", "description": "{\\"q\\"}"}]'
    result = extract_directive(text)

    assert isinstance(result, DirectiveFound)
    assert result.payload == {"copy": "a ] b } c", "description": '{"q"}'}
    assert strip_directive(text, result) == ""


def test_malformed_directive_is_reported_and_stripped():
    text = "수정했어요 [UPDATE_CONTENT: {copy: NEW}] 확인해 주세요"
    result = extract_directive(text)

    assert isinstance(result, DirectiveMalformed)
    assert result.raw == "{copy: NEW}"
    assert strip_directive(text, result) == "수정했어요 확인해 주세요"


def test_empty_object_payload_is_found():
    result = extract_directive("[UPDATE_CONTENT: {}]")

    assert isinstance(result, DirectiveFound)
    assert result.payload == {}


def test_text_without_directive_is_returned_trimmed():
    text = "  그대로 둡니다.  "
    result = extract_directive(text)

    assert isinstance(result, DirectiveNotFound)
    assert strip_directive(text, result) == "그대로 둡니다."


def test_unterminated_directive_is_not_found():
    assert isinstance(extract_directive('[UPDATE_CONTENT: {"copy": "NEW"'), DirectiveNotFound)
    assert isinstance(extract_directive('[UPDATE_CONTENT: {"copy": "NEW"}'), DirectiveNotFound)
    assert isinstance(extract_directive("[UPDATE_CONTENT: no json]"), DirectiveNotFound)


def test_only_first_directive_is_used():
    text = '[UPDATE_CONTENT: {"copy":"A"}]\n[UPDATE_CONTENT: {"copy":"B"}]'
    result = extract_directive(text)

    assert isinstance(result, DirectiveFound)
    assert result.payload == {"copy": "A"}
    assert strip_directive(text, result) == '[UPDATE_CONTENT: {"copy":"B"}]'


def test_newline_seam_is_preserved():
    text = '첫 줄\n[UPDATE_CONTENT: {"copy":"X"}]\n둘째 줄'
    result = extract_directive(text)

    assert strip_directive(text, result) == "첫 줄\n둘째 줄"
