# src/services/exceptions.py

# --- Not Found Exceptions ---
class UserNotFoundError(Exception):
    """사용자를 찾을 수 없을 때"""
    pass

# --- Validation Exceptions ---
class InvalidCapabilityError(ValueError):
    """권한 이름이 비어 있거나 형식에 맞지 않을 때"""
    pass

class InvalidRoleError(ValueError):
    """ADMIN, EDITOR, USER 이외의 역할이 주어졌을 때"""
    pass

class PayloadValidationError(ValueError):
    """요청 데이터가 최소한의 형식 검사를 통과하지 못했을 때"""
    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or []

# --- Auth Exceptions ---
class TokenInvalidError(Exception):
    """토큰이 유효하지 않거나 만료되었거나 없을 때"""
    pass
