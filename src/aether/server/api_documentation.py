TITLE = "Aether"

SUMMARY = "Space resolution and organization access for multi-tenant workspaces"

TAGS_METADATA = [
    {
        "name": "spaces",
        "description": (
            "Space operations. List the personal and organization spaces a user can"
            " work in, and resolve the space selected by a request."
        ),
    },
    {
        "name": "organizations",
        "description": "Organization and membership management.",
    },
]
