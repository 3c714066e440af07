"""
Idempotency 유틸리티

쓰기 요청의 Idempotency-Key 생성 및 파싱 기능 제공
규칙: cd-{operation}-{uuid4}

키는 사용자 작업 1회당 1개를 만들고, 어댑터 재시도에서 같은 키를 재사용한다.
"""

import uuid

# 현금 서랍 idempotency key 접두사
IDEMPOTENCY_PREFIX: str = "cd"


def make_idempotency_key(operation: str, request_id: str | None = None) -> str:
    """쓰기 요청용 idempotency key 생성

    Args:
        operation: 작업 이름 (예: open_session)
        request_id: 고유 ID (None이면 uuid4 생성)

    Returns:
        cd-{operation}-{request_id} 형식 문자열

    Example:
        >>> make_idempotency_key("open_session", "550e8400-e29b-41d4-a716-446655440000")
        'cd-open_session-550e8400-e29b-41d4-a716-446655440000'
    """
    if not operation:
        raise ValueError("operation은 비어 있을 수 없습니다")
    if "-" in operation:
        raise ValueError("operation에는 '-'를 사용할 수 없습니다")

    return f"{IDEMPOTENCY_PREFIX}-{operation}-{request_id or uuid.uuid4()}"


def parse_idempotency_key(key: str) -> tuple[str, str] | None:
    """idempotency key에서 (operation, request_id) 추출

    Returns:
        (operation, request_id) 또는 None (형식 불일치 시)

    Example:
        >>> parse_idempotency_key("cd-close_session-abc")
        ('close_session', 'abc')
        >>> parse_idempotency_key("other-12345") is None
        True
    """
    if not key:
        return None

    prefix = f"{IDEMPOTENCY_PREFIX}-"
    if not key.startswith(prefix):
        return None

    operation, sep, request_id = key[len(prefix):].partition("-")
    if not sep or not operation or not request_id:
        return None

    return operation, request_id


def is_drawer_key(key: str) -> bool:
    """현금 서랍이 생성한 키인지 확인"""
    return parse_idempotency_key(key) is not None
