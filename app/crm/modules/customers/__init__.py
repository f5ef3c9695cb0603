"""
Customers module.

- Customers CRUD (list + search by name, create, detail, update, delete)
- Optional invoice type reference
- `notes` column is a denormalized note count owned by the notes module
"""
