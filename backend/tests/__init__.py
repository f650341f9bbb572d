# Register every SQLModel table at test discovery time, before any test database is created
import league_admin.models  # noqa: F401
