"""Services package - map export orchestration."""

from services.map_export_service import (
    clamp_zoom,
    export_filename,
    export_region,
    resolve_output_format,
    run_export,
    save_encoded_image,
    validate_zoom,
)

__all__ = [
    'clamp_zoom',
    'export_filename',
    'export_region',
    'resolve_output_format',
    'run_export',
    'save_encoded_image',
    'validate_zoom',
]
