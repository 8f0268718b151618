"""
Shared, cross-cutting code for the API.

`core/` holds the small building blocks that features share (DB pool,
schema install, error types). Student SQL and business rules live in
`students/`.
"""
