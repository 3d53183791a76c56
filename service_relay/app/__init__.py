"""
Content relay gateway service package.

The relay fronts a set of upstream origins, selected by request path prefix:
- Routing: first-match prefix rules, path sanitization, raw-mode redirects
- Caching: in-memory, capacity-bounded response cache with TTL
- Static pages: home page, icon, status document and recent logs

Structure:
- app.main: FastAPI app, routes, and error handler wiring.
- app.config: relay configuration file models and loader.
- app.units: size and duration literals.
- app.routing: rule matching and the forwarder.
- app.caching: response cache and cacheability policy.
- app.adapters: the upstream HTTP client.
- app.static: static assets and the status document.
"""
