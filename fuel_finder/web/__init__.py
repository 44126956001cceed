"""Web module: FastAPI interface and the browser geolocation bridge."""
