"""Shape subpackage for runtime value introspection.

Re-exports the public API for the shape module:
- Shape: StrEnum of the three value shapes (COMPOSITE, SEQUENCE, SCALAR)
- Member: descriptor of one composite member and its metadata
- MISSING: sentinel for an absent operand
- MemberSpec / MemberRegistry / register_members: member metadata side table
- classify / members_of / member_value: dispatch helpers used by the engine
"""

from struct_diff.shape.classifier import classify, member_value, members_of
from struct_diff.shape.kinds import MISSING, Member, Shape
from struct_diff.shape.metadata import (
    MemberRegistry,
    MemberSpec,
    TagSyntax,
    default_registry,
    parse_tag,
    register_members,
)

__all__ = [
    "MISSING",
    "Member",
    "MemberRegistry",
    "MemberSpec",
    "Shape",
    "TagSyntax",
    "classify",
    "default_registry",
    "member_value",
    "members_of",
    "parse_tag",
    "register_members",
]
