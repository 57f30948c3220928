"""Canonical field vocabulary.

Harvested records use the OpenGeoMetadata Aardvark field names. The pipeline
renames a fixed subset of them to short canonical names; every other field is
kept under its original name.
"""

from typing import Final

ID_FIELD: Final = "id"
BBOX_FIELD: Final = "bbox"
SCHEMA_VERSION_FIELD: Final = "gbl_mdVersion_s"

FIELD_MAP: Final[dict[str, str]] = {
    "dct_title_s": "title",
    "dct_creator_sm": "creator",
    "dct_publisher_sm": "publisher",
    "dct_description_sm": "description",
    "schema_provider_s": "provider",
    "dct_accessRights_s": "access_rights",
    "gbl_resourceClass_sm": "resource_class",
    "gbl_resourceType_sm": "resource_type",
    "dcat_theme_sm": "theme",
    "dct_subject_sm": "subject",
    "dct_spatial_sm": "location",
    "dct_format_s": "format",
    "dct_identifier_sm": "identifier",
    "dct_references_s": "references",
    "dct_temporal_sm": "temporal",
    "gbl_wxsIdentifier_s": "wxs_identifier",
    "gbl_mdModified_dt": "modified",
    "locn_geometry": "geometry",
    "dcat_bbox": BBOX_FIELD,
    "gbl_indexYear_im": "index_year",
}

# Fields that get a single-column expression index on the documents table.
INDEX_FIELDS: Final[tuple[str, ...]] = (
    "title",
    "creator",
    "publisher",
    "description",
    "provider",
    "access_rights",
    "resource_class",
    "resource_type",
    "theme",
    "subject",
    "location",
)

# Fields paired into two-column composite indexes for faceted browsing.
FACET_FIELDS: Final[tuple[str, ...]] = (
    "provider",
    "access_rights",
    "resource_class",
    "resource_type",
    "theme",
    "location",
)

# Column order of the fulltext table, after the leading id column.
FULLTEXT_FIELDS: Final[tuple[str, ...]] = (
    "access_rights",
    "creator",
    "description",
    "format",
    "identifier",
    "location",
    "provider",
    "publisher",
    "resource_class",
    "resource_type",
    "subject",
    "temporal",
    "theme",
    "title",
)

__all__ = [
    "BBOX_FIELD",
    "FACET_FIELDS",
    "FIELD_MAP",
    "FULLTEXT_FIELDS",
    "ID_FIELD",
    "INDEX_FIELDS",
    "SCHEMA_VERSION_FIELD",
]
