# Models package
# Ensure all model modules are imported so that Base.metadata knows every table
from app.models.user import User  # noqa: F401
from app.models.export_task import ExportTask  # noqa: F401
