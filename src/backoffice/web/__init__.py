"""HTTP surface: FastAPI pages and write endpoints over the services and API layers."""
