from __future__ import annotations

# Permission scopes: "any" grants the action on every resource, "own" only on
# resources the caller authored (posts) or is (users).
ANY = "any"
OWN = "own"

ADMIN_PERMISSIONS: dict[str, str] = {
    "post.read": ANY,
    "post.read_draft": ANY,
    "post.create": ANY,
    "post.update": ANY,
    "post.delete": ANY,
    "post.assign_author": ANY,
    "tag.read": ANY,
    "tag.create": ANY,
    "tag.delete": ANY,
    "user.read": ANY,
    "user.list": ANY,
    "user.update": ANY,
    "user.delete": ANY,
    "user.manage": ANY,
    "role.read": ANY,
}

AUTHOR_PERMISSIONS: dict[str, str] = {
    "post.read": ANY,
    "post.read_draft": OWN,
    "post.create": ANY,
    "post.update": OWN,
    "post.delete": OWN,
    "tag.read": ANY,
    "tag.create": ANY,
    "user.read": OWN,
    "user.update": OWN,
    "role.read": ANY,
}

ROLE_DEFINITIONS = [
    {
        "name": "admin",
        "description": "Editors-in-chief: manage every post, tag and account.",
        "permissions": ADMIN_PERMISSIONS,
    },
    {
        "name": "author",
        "description": "Writers: draft, publish and edit their own posts.",
        "permissions": AUTHOR_PERMISSIONS,
    },
]
