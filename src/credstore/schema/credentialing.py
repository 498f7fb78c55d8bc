"""Schemas of the credentialing workflow.

Column order is the physical order of each table; changing it requires
migrating existing data.
"""

from __future__ import annotations

from credstore.schema.models import ChildRelation, EntitySchema
from credstore.schema.registry import SchemaRegistry

PROVIDERS = EntitySchema(
    name="Providers",
    table="Providers",
    columns=(
        "ID",
        "First Name",
        "Last Name",
        "NPI",
        "Email",
        "Phone",
        "Status",
        "Specialties (JSON)",
        "Created At",
        "Created By",
        "Updated At",
        "Updated By",
    ),
    children=(
        ChildRelation(key="licenses", child_entity="Licenses", parent_id_column="Provider ID"),
        ChildRelation(
            key="affiliations",
            child_entity="ProviderAffiliations",
            parent_id_column="Provider ID",
        ),
    ),
    description="Individual practitioners being credentialed",
)

LICENSES = EntitySchema(
    name="Licenses",
    table="Licenses",
    columns=(
        "ID",
        "Provider ID",
        "License Number",
        "License Type",
        "State",
        "Status",
        "Issue Date",
        "Expiration Date",
        "Created At",
        "Created By",
    ),
    description="State licenses held by providers",
)

PROVIDER_AFFILIATIONS = EntitySchema(
    name="ProviderAffiliations",
    table="Provider Affiliations",
    columns=("ID", "Provider ID", "Facility ID", "Role", "Start Date", "End Date"),
    description="Provider <-> facility affiliations",
)

FACILITIES = EntitySchema(
    name="Facilities",
    table="Facilities",
    columns=(
        "ID",
        "Name",
        "NPI",
        "Address",
        "City",
        "State",
        "Zip",
        "Phone",
        "Status",
        "Created At",
        "Created By",
        "Updated At",
        "Updated By",
    ),
    children=(
        ChildRelation(
            key="specialties", child_entity="FacilitySpecialties", parent_id_column="Facility ID"
        ),
        ChildRelation(
            key="contacts", child_entity="FacilityContacts", parent_id_column="Facility ID"
        ),
        ChildRelation(
            key="affiliations",
            child_entity="ProviderAffiliations",
            parent_id_column="Facility ID",
        ),
    ),
    description="Clinics, hospitals and other service locations",
)

FACILITY_SPECIALTIES = EntitySchema(
    name="FacilitySpecialties",
    table="Facility Specialties",
    columns=("ID", "Facility ID", "Taxonomy ID"),
)

FACILITY_CONTACTS = EntitySchema(
    name="FacilityContacts",
    table="Facility Contacts",
    columns=("ID", "Facility ID", "Name", "Title", "Email", "Phone"),
)

REQUESTS = EntitySchema(
    name="Requests",
    table="Requests",
    columns=(
        "ID",
        "Type",
        "Status",
        "Priority",
        "Provider ID",
        "Facility ID",
        "Owner Email",
        "Due Date",
        "Payload (JSON)",
        "Notes",
        "Created At",
        "Created By",
        "Updated At",
        "Updated By",
    ),
    children=(
        ChildRelation(
            key="comments", child_entity="RequestComments", parent_id_column="Request ID"
        ),
        ChildRelation(
            key="documents", child_entity="RequestDocuments", parent_id_column="Request ID"
        ),
    ),
    require_actor=True,
    description="Credentialing requests worked by staff",
)

REQUEST_COMMENTS = EntitySchema(
    name="RequestComments",
    table="Request Comments",
    columns=("ID", "Request ID", "Body", "Created At", "Created By"),
    require_actor=True,
)

REQUEST_DOCUMENTS = EntitySchema(
    name="RequestDocuments",
    table="Request Documents",
    columns=("ID", "Request ID", "File Name", "URL", "Metadata (JSON)", "Created At", "Created By"),
)

USERS = EntitySchema(
    name="Users",
    table="Users",
    columns=("Email", "Name", "Role", "Active"),
    primary_key="Email",
    description="Staff directory used to resolve request owners",
)

CREDENTIALING_SCHEMAS: tuple[EntitySchema, ...] = (
    PROVIDERS,
    LICENSES,
    PROVIDER_AFFILIATIONS,
    FACILITIES,
    FACILITY_SPECIALTIES,
    FACILITY_CONTACTS,
    REQUESTS,
    REQUEST_COMMENTS,
    REQUEST_DOCUMENTS,
    USERS,
)

# Fields matched by free-text search, per entity
SEARCH_FIELDS: dict[str, list[str]] = {
    "Providers": ["firstName", "lastName", "npi", "email"],
    "Licenses": ["licenseNumber", "state", "licenseType"],
    "Facilities": ["name", "npi", "city", "state"],
    "FacilitySpecialties": ["taxonomyId"],
    "FacilityContacts": ["name", "email"],
    "Requests": ["type", "status", "ownerEmail", "ownerName", "notes"],
    "Users": ["email", "name"],
}


def credentialing_registry() -> SchemaRegistry:
    """Registry holding every credentialing schema."""
    return SchemaRegistry(CREDENTIALING_SCHEMAS)
