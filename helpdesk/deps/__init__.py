# Request-layer dependencies (``Depends`` targets) shared by the API routers.
