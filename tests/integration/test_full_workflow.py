"""End-to-end credentialing workflow against both storage backends."""

from credstore import AuditKind, CredStore, ErrorKind, MemoryAuditLog
from credstore.data.service import NO_CHANGES
from credstore.workflow import RequestDesk


class TestFacilityLifecycle:
    """A facility with specialties from creation to cascade delete."""

    def test_facility_with_specialties(self, any_store: CredStore, audit: MemoryAuditLog) -> None:
        store = any_store
        facility = store.create_entity("Facilities", {"name": "Acme Clinic", "state": "NY"}).data
        neighbour = store.create_entity("Facilities", {"name": "Beta Health"}).data

        for taxonomy in ("207Q00000X", "208D00000X"):
            result = store.create_entity(
                "FacilitySpecialties", {"facilityId": facility["id"], "taxonomyId": taxonomy}
            )
            assert result.success
        store.create_entity(
            "FacilitySpecialties", {"facilityId": neighbour["id"], "taxonomyId": "363L00000X"}
        )

        details = store.get_entity_details("Facilities", facility["id"]).data
        assert details["name"] == "Acme Clinic"
        assert sorted(s["taxonomyId"] for s in details["specialties"]) == [
            "207Q00000X",
            "208D00000X",
        ]
        assert details["contacts"] == []

        patched = store.patch_entity("Facilities", facility["id"], {"status": "Active"})
        assert patched.data["changed"] == ["status"]
        unchanged = store.patch_entity("Facilities", facility["id"], {"status": "Active"})
        assert unchanged.message == NO_CHANGES

        specialty_id = details["specialties"][0]["id"]
        store.patch_entity("FacilitySpecialties", specialty_id, {"taxonomyId": "261QP2300X"})
        details = store.get_entity_details("Facilities", facility["id"]).data
        renamed = [s for s in details["specialties"] if s["id"] == specialty_id]
        assert renamed[0]["taxonomyId"] == "261QP2300X"

        deleted = store.delete_entity_cascade("Facilities", facility["id"])
        assert deleted.success
        assert deleted.data["deleted_children"]["specialties"] == 2

        gone = store.get_entity_details("Facilities", facility["id"])
        assert gone.error == ErrorKind.NOT_FOUND

        remaining = store.list_entities("FacilitySpecialties")
        assert [s["taxonomyId"] for s in remaining.data["data"]] == ["363L00000X"]
        neighbour_details = store.get_entity_details("Facilities", neighbour["id"]).data
        assert len(neighbour_details["specialties"]) == 1

        requests = [e.message for e in audit.of_kind(AuditKind.REQUEST)]
        assert requests.count("Update Facilities") == 1
        assert "Delete Facilities" in requests


class TestProviderRequests:
    """Providers, licenses and the request queue together."""

    def test_request_queue(self, any_store: CredStore) -> None:
        store = any_store
        store.create_entity("Users", {"email": "ann@example.com", "name": "Ann Lee"})
        provider = store.create_entity(
            "Providers",
            {"firstName": "Sam", "lastName": "Rivera", "specialties": ["Cardiology"]},
        ).data
        store.create_entity(
            "Licenses",
            {"providerId": provider["id"], "state": "NY", "expirationDate": "2026-01-31"},
        )

        desk = RequestDesk(store)
        request = store.create_entity(
            "Requests",
            {
                "type": "Initial",
                "status": "New",
                "providerId": provider["id"],
                "ownerEmail": "ann@example.com",
                "payload": {"source": "portal"},
            },
        ).data
        assert desk.transition(request["id"], "In Progress", note="Started review").success

        listing = desk.list_requests({"filters": {"status": "In Progress"}}).data
        assert listing["total_records"] == 1
        assert listing["data"][0]["ownerName"] == "Ann Lee"
        assert listing["data"][0]["payload"] == {"source": "portal"}

        details = store.get_entity_details("Requests", request["id"]).data
        assert [c["body"] for c in details["comments"]] == ["Started review"]

        provider_details = store.get_entity_details("Providers", provider["id"]).data
        assert provider_details["specialties"] == ["Cardiology"]
        assert provider_details["licenses"][0]["state"] == "NY"

        assert store.delete_entity_cascade("Requests", request["id"]).data["deleted_children"] == {
            "comments": 1,
            "documents": 0,
        }
        assert desk.status_counts().data["total"] == 0
