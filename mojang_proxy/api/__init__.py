"""HTTP layer: routes, schemas, middleware and rate limiting."""
