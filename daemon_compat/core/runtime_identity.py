from __future__ import annotations

import re
from dataclasses import dataclass, field

from .errors import ValidationError


_VERSION_RE = re.compile(r"^(\d+)(?:\.(\d+))?")


@dataclass(frozen=True, order=True)
class JavaVersion:
    major: int

    @classmethod
    def parse(cls, text: str | int) -> "JavaVersion":
        """
        Accepts "1.8", "8", "11.0.2", "17-ea" and plain ints.
        Legacy "1.N" forms map to major N.
        """
        if isinstance(text, int) and not isinstance(text, bool):
            if text < 1:
                raise ValidationError(code="runtime.version_invalid", message=f"Invalid Java version: {text}")
            return cls(major=text)
        s = str(text).strip()
        m = _VERSION_RE.match(s)
        if not m:
            raise ValidationError(code="runtime.version_invalid", message=f"Invalid Java version: {text!r}")
        major = int(m.group(1))
        if major == 1 and m.group(2) is not None:
            major = int(m.group(2))
        if major < 1:
            raise ValidationError(code="runtime.version_invalid", message=f"Invalid Java version: {text!r}")
        return cls(major=major)

    def __str__(self) -> str:
        return str(self.major) if self.major >= 9 else f"1.{self.major}"


# First version without PermGen; selects the modern default baseline.
JAVA_9 = JavaVersion(9)


@dataclass(frozen=True)
class RuntimeIdentity:
    """
    Identifies one installed runtime. Equality is the "same runtime" check.
    """

    java_home: str
    java_version: JavaVersion = field(default=JAVA_9)

    def as_dict(self) -> dict[str, str]:
        return {"java_home": self.java_home, "java_version": str(self.java_version)}
