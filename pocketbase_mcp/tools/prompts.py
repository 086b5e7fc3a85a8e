# =============================================================================
# tools/prompts.py  —  MCP Prompts (PocketBase syntax cheat-sheets)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Registers reusable prompts that a client can pull into a conversation
#   when the model needs to WRITE PocketBase syntax rather than call a
#   tool: filter expressions, collection schemas, access rules, and full
#   list queries.
#
# WHY BUILDER FUNCTIONS?
#   Each prompt is a plain function returning a string, registered on the
#   server by register_prompts().  The text can be checked in tests
#   without a running server, and the server module stays the only place
#   that owns the FastMCP instance.
#
# PROMPT SHAPE:
#   1. The user's request (and the collection, when given)
#   2. A compact syntax reference
#   3. An explicit ask, so the model answers with a concrete artifact
# =============================================================================

from fastmcp import FastMCP


def _collection_line(label: str, value: str | None) -> str:
    return f"**{label}:** {value}" if value else ""


def build_filter_prompt(description: str, collection: str | None = None) -> str:
    return f"""Help me construct a PocketBase filter query.

**What I want to find:** {description}
{_collection_line("Collection", collection)}

## PocketBase Filter Syntax Reference

### Comparison Operators
- `=` equals: `status = 'active'`
- `!=` not equals: `status != 'deleted'`
- `>` greater than: `price > 100`
- `>=` greater or equal: `age >= 18`
- `<` less than: `quantity < 10`
- `<=` less or equal: `score <= 100`

### Text Operators
- `~` contains: `title ~ 'hello'`
- `!~` not contains: `email !~ 'spam'`

### Logical Operators
- `&&` AND: `status = 'active' && verified = true`
- `||` OR: `role = 'admin' || role = 'moderator'`

### Null Checks
- `= null` is null: `avatar = null`
- `!= null` is not null: `avatar != null`

### Date Comparisons
- Use ISO format: `created > '2024-01-01 00:00:00'`
- Time macros: `@now`, `@todayStart`, `@todayEnd`, `@monthStart`, `@monthEnd`, `@yearStart`, `@yearEnd`

### Relation Queries
- Dot notation: `author.name = 'John'`
- Nested: `post.author.verified = true`

### Array/Select Fields
- Contains value: `tags ~ 'featured'`

Please provide the filter query for my requirements."""


def build_schema_prompt(purpose: str, collection_name: str | None = None) -> str:
    return f"""Help me design a PocketBase collection schema.

**Purpose:** {purpose}
{_collection_line("Proposed Name", collection_name)}

## PocketBase Field Types

| Type | Description | Options |
|------|-------------|---------|
| `text` | Plain text | min, max, pattern |
| `editor` | Rich text HTML | - |
| `number` | Integer or decimal | min, max, noDecimal |
| `bool` | True/false | - |
| `email` | Email address | exceptDomains, onlyDomains |
| `url` | URL | exceptDomains, onlyDomains |
| `date` | Date/datetime | min, max |
| `select` | Single/multi select | values, maxSelect |
| `file` | File upload | maxSelect, maxSize, mimeTypes |
| `relation` | Link to another collection | collectionId, cascadeDelete, maxSelect |
| `json` | JSON data | maxSize |
| `autodate` | Auto-set timestamp | onCreate, onUpdate |

## Collection Types
- `base` - Regular data collection
- `auth` - User authentication collection (has email, password, verified fields)
- `view` - SQL view (read-only, needs options.query)

## Naming Rules
- Collection and field names start with a letter and use only letters, numbers and underscores
- Collection names are 3-100 characters
- Reserved: `_superusers`, `_authOrigins`, `_externalAuths`, `_mfas`, `_otps`

## Access Rules
Rules use filter syntax. Empty string = public, null = admin only.
- `listRule` - Who can list records
- `viewRule` - Who can view individual records
- `createRule` - Who can create records
- `updateRule` - Who can update records
- `deleteRule` - Who can delete records

Common patterns:
- Public read: `""`
- Authenticated users: `"@request.auth.id != ''"`
- Owner only: `"@request.auth.id = user"`
- Admin only: `null`

Please suggest a schema with field definitions and access rules."""


def build_rules_prompt(scenario: str, collection: str | None = None) -> str:
    return f"""Help me configure PocketBase access rules.

**Scenario:** {scenario}
{_collection_line("Collection", collection)}

## Access Rule Syntax

Rules use the same filter syntax as queries, with special variables:

### Request Variables
- `@request.auth.id` - Current user's ID (empty if not authenticated)
- `@request.auth.email` - Current user's email
- `@request.auth.verified` - Whether user is verified
- `@request.auth.collectionName` - Auth collection name
- `@request.body.fieldName` - Data being submitted

### Record Variables (for update/delete)
- `id` - Record ID
- `created` - Creation timestamp
- `updated` - Update timestamp
- Any field name directly

### Common Rule Patterns

**Public access (anyone):** `""`

**Authenticated users only:** `"@request.auth.id != ''"`

**Owner only (assuming 'user' field):** `"@request.auth.id = user"`

**Owner or admin:** `"@request.auth.id = user || @request.auth.role = 'admin'"`

**Verified users only:** `"@request.auth.verified = true"`

**Admin only:** `null`

**Prevent field modification:** `"@request.body.status:isset = false || status = @request.body.status"`

**Based on related record:** `"@request.auth.id = post.author"`

Please suggest the appropriate rules for each operation (list, view, create, update, delete)."""


def build_query_prompt(goal: str, collection: str) -> str:
    return f"""Help me build a PocketBase query.

**Goal:** {goal}
**Collection:** {collection}

## Query Parameters

### Filter
```
filter: "status = 'active' && created > '2024-01-01'"
```

### Sort (prefix with - for descending)
```
sort: "-created,title"
```

### Pagination
```
page: 1
perPage: 20   (max 500)
```

### Expand Relations
```
expand: "author,comments"
expand: "author.profile"
```

### Select Fields
```
fields: "id,title,created,expand.author.name"
```

## Example (list_records arguments)
```json
{{
  "collection": "{collection}",
  "filter": "status = 'published'",
  "sort": "-created",
  "page": 1,
  "perPage": 10,
  "expand": "author"
}}
```

Please provide the complete query parameters for my goal."""


def register_prompts(mcp: FastMCP) -> None:
    """Attach every prompt to ``mcp``."""

    @mcp.prompt(name="pocketbase_filter", description="Help construct PocketBase filter queries with proper syntax")
    def pocketbase_filter(description: str, collection: str | None = None) -> str:
        return build_filter_prompt(description, collection)

    @mcp.prompt(name="pocketbase_schema", description="Help design a PocketBase collection schema")
    def pocketbase_schema(purpose: str, collection_name: str | None = None) -> str:
        return build_schema_prompt(purpose, collection_name)

    @mcp.prompt(name="pocketbase_rules", description="Help configure PocketBase collection access rules")
    def pocketbase_rules(scenario: str, collection: str | None = None) -> str:
        return build_rules_prompt(scenario, collection)

    @mcp.prompt(
        name="pocketbase_query",
        description="Help build a complete PocketBase query with filter, sort, and pagination",
    )
    def pocketbase_query(goal: str, collection: str) -> str:
        return build_query_prompt(goal, collection)
