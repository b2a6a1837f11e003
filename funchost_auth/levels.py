from enum import IntEnum


class AuthorizationLevel(IntEnum):
    """Access tier granted to a request.

    Members are ordered by capability: a higher level implies every
    capability of the levels below it.
    """

    ANONYMOUS = 0
    FUNCTION = 1
    SYSTEM = 2
    ADMIN = 3

    def allows(self, required: "AuthorizationLevel") -> bool:
        return self >= required

    def __str__(self) -> str:
        return self.name.capitalize()
