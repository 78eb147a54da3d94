"""Resource routers, one module per back-office resource."""

from . import ad_zones, advertisements, categories, posts, users

ROUTERS = [
    posts.router,
    categories.router,
    users.router,
    ad_zones.router,
    advertisements.router,
]
