"""stockfolio - portfolio tracking and stock research API."""
