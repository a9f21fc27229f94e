from tubely.api.v1.routers import router

__all__ = ["router"]
