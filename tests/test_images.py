"""
Image proposal tests
====================

Image contributions run on the same state machine as vehicle proposals and
move files between the staged and durable areas.
"""

import pytest

from core.config.settings import settings
from core.database.models import Contribution, ImageContribution, ProposalStatus, VehicleImage
from core.errors import (
    ForbiddenError, NotFoundError, PreconditionFailedError, StorageError, ValidationError,
)
from core.services.storage_service import LocalStagingService
from catalog.store import CatalogStore
from contributions.approval import ApprovalApplier
from contributions.service import ContributionService
from images.service import PROMOTE_FAILURE_REASON, ImageContributionService

from conftest import add_vehicle


PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def images(db, staging):
    return ImageContributionService(db, staging)


def upload(images, actor, **kwargs):
    return images.submit(actor, PNG, "front.png", "image/png", **kwargs)


class TestImageSubmission:
    """Validation and staging of uploads."""

    def test_stages_file(self, db, images, staging, alice):
        vehicle = add_vehicle(db)
        image = upload(images, alice, vehicle_id=vehicle.id, alt_text="Front view")

        assert image.status == ProposalStatus.PENDING
        assert image.path.startswith(settings.storage.staged_prefix)
        assert (staging.root / image.path).read_bytes() == PNG
        assert image.file_size == len(PNG)

    def test_rejects_wrong_type(self, db, images, alice):
        vehicle = add_vehicle(db)
        with pytest.raises(ValidationError):
            images.submit(alice, b"GIF89a", "anim.gif", "image/gif", vehicle_id=vehicle.id)

    def test_rejects_oversized(self, db, images, alice, monkeypatch):
        monkeypatch.setattr(settings.storage, "max_image_bytes", 16)
        vehicle = add_vehicle(db)
        with pytest.raises(ValidationError):
            upload(images, alice, vehicle_id=vehicle.id)

    def test_needs_a_target(self, images, alice):
        with pytest.raises(ValidationError):
            upload(images, alice)

    def test_unknown_vehicle(self, images, alice):
        with pytest.raises(NotFoundError):
            upload(images, alice, vehicle_id=777)


class TestStandaloneModeration:
    """Approve, reject, cancel and edit a single image."""

    def test_approve_promotes_and_orders(self, db, images, staging, alice, moderator):
        vehicle = add_vehicle(db)
        first = upload(images, alice, vehicle_id=vehicle.id)
        second = upload(images, alice, vehicle_id=vehicle.id)
        staged_path = first.path

        first_image = images.approve(moderator, first.id)
        second_image = images.approve(moderator, second.id)

        assert first_image.display_order == 0
        assert second_image.display_order == 1
        assert first_image.path.startswith(settings.storage.durable_prefix)
        assert (staging.root / first_image.path).exists()
        assert not (staging.root / staged_path).exists()
        assert images.get(first.id).status == ProposalStatus.APPROVED

    def test_member_cannot_approve(self, db, images, alice, bob):
        vehicle = add_vehicle(db)
        image = upload(images, alice, vehicle_id=vehicle.id)
        with pytest.raises(ForbiddenError):
            images.approve(bob, image.id)

    def test_reject_discards_file(self, db, images, staging, alice, moderator):
        vehicle = add_vehicle(db)
        image = upload(images, alice, vehicle_id=vehicle.id)

        rejected = images.reject(moderator, image.id, "Image is blurry and cropped")

        assert rejected.status == ProposalStatus.REJECTED
        assert not (staging.root / image.path).exists()
        assert db.query(VehicleImage).count() == 0

    def test_cancel_by_owner_only(self, db, images, staging, alice, bob):
        vehicle = add_vehicle(db)
        image = upload(images, alice, vehicle_id=vehicle.id)
        with pytest.raises(ForbiddenError):
            images.cancel(bob, image.id)

        cancelled = images.cancel(alice, image.id)
        assert cancelled.status == ProposalStatus.CANCELLED
        assert not (staging.root / image.path).exists()

    def test_edit_while_pending(self, db, images, alice, moderator):
        vehicle = add_vehicle(db)
        image = upload(images, alice, vehicle_id=vehicle.id)
        edited = images.edit(alice, image.id, "Rear three-quarter", "Launch edition")
        assert edited.alt_text == "Rear three-quarter"

        images.reject(moderator, image.id, "Wrong vehicle in the photo")
        with pytest.raises(PreconditionFailedError):
            images.edit(alice, image.id, "Too late", None)

    def test_delete_removes_durable_file(self, db, images, staging, alice, moderator, admin):
        vehicle = add_vehicle(db)
        image = upload(images, alice, vehicle_id=vehicle.id)
        vehicle_image = images.approve(moderator, image.id)
        vehicle_image_id, durable_path = vehicle_image.id, vehicle_image.path
        assert (staging.root / durable_path).exists()

        images.delete_vehicle_image(admin, vehicle_image_id)

        assert db.get(VehicleImage, vehicle_image_id) is None
        assert not (staging.root / durable_path).exists()

    def test_failed_approval_returns_file_to_staging(self, db, images, staging, alice, moderator, monkeypatch):
        vehicle = add_vehicle(db)
        image = upload(images, alice, vehicle_id=vehicle.id)
        image_id, staged_path = image.id, image.path

        def broken_order(self, vehicle_id):
            raise RuntimeError("display order lookup failed")

        monkeypatch.setattr(CatalogStore, "next_display_order", broken_order)
        with pytest.raises(RuntimeError):
            images.approve(moderator, image_id)

        db.expire_all()
        restored = images.get(image_id)
        assert restored.status == ProposalStatus.PENDING
        assert restored.path == staged_path
        assert (staging.root / staged_path).read_bytes() == PNG
        assert not (staging.root / staging.durable_key_for(staged_path)).exists()

    def test_vanished_vehicle(self, db, images, alice, moderator):
        vehicle = add_vehicle(db)
        image = upload(images, alice, vehicle_id=vehicle.id)
        db.delete(vehicle)
        db.commit()

        with pytest.raises(NotFoundError):
            images.approve(moderator, image.id)
        assert images.get(image.id).status == ProposalStatus.PENDING


class TestLinkedImages:
    """Images riding along with a vehicle contribution."""

    @pytest.fixture
    def contribution(self, db, staging, alice):
        return ContributionService(db, staging).submit(alice, {"make": "Zeekr", "model": "001", "year": 2024})

    def test_waits_for_vehicle_contribution(self, images, contribution, alice, moderator):
        image = upload(images, alice, contribution_id=contribution.id)
        assert image.vehicle_id is None
        with pytest.raises(PreconditionFailedError):
            images.approve(moderator, image.id)

    def test_approved_with_contribution(self, db, staging, images, contribution, alice, moderator):
        first = upload(images, alice, contribution_id=contribution.id)
        second = upload(images, alice, contribution_id=contribution.id)

        ApprovalApplier(db, staging).approve(moderator, contribution.id)

        db.expire_all()
        vehicle_images = db.query(VehicleImage).order_by(VehicleImage.display_order).all()
        assert [vi.display_order for vi in vehicle_images] == [0, 1]
        for image_id in (first.id, second.id):
            image = db.get(ImageContribution, image_id)
            assert image.status == ProposalStatus.APPROVED
            assert image.vehicle_id == vehicle_images[0].vehicle_id

    def test_promote_failure_rejects_only_that_image(self, db, staging, images, contribution, alice, moderator, monkeypatch):
        good = upload(images, alice, contribution_id=contribution.id)
        bad = upload(images, alice, contribution_id=contribution.id)
        real_promote = LocalStagingService.promote

        def flaky_promote(self, staged_key):
            if staged_key == bad.path:
                raise StorageError("disk full")
            return real_promote(self, staged_key)

        monkeypatch.setattr(LocalStagingService, "promote", flaky_promote)
        approved = ApprovalApplier(db, staging).approve(moderator, contribution.id)

        assert approved.status == ProposalStatus.APPROVED
        db.expire_all()
        assert db.get(ImageContribution, good.id).status == ProposalStatus.APPROVED
        failed = db.get(ImageContribution, bad.id)
        assert failed.status == ProposalStatus.REJECTED
        assert failed.rejection_comment == PROMOTE_FAILURE_REASON

    def test_rejected_with_contribution(self, db, staging, images, contribution, alice, moderator):
        image = upload(images, alice, contribution_id=contribution.id)
        ApprovalApplier(db, staging).reject(moderator, contribution.id, "Specs do not match the brochure")

        db.expire_all()
        assert db.get(ImageContribution, image.id).status == ProposalStatus.REJECTED
        assert not (staging.root / image.path).exists()

    def test_cancelled_with_contribution(self, db, staging, images, contribution, alice):
        image = upload(images, alice, contribution_id=contribution.id)
        _, cleaned = ContributionService(db, staging).cancel(alice, contribution.id)

        assert cleaned == 1
        db.expire_all()
        assert db.get(ImageContribution, image.id).status == ProposalStatus.CANCELLED
        assert not (staging.root / image.path).exists()

    def test_failed_contribution_approval_returns_files_to_staging(self, db, staging, images, contribution, alice, moderator, monkeypatch):
        image = upload(images, alice, contribution_id=contribution.id)
        image_id, staged_path = image.id, image.path
        contribution_id = contribution.id
        real_approve_linked = ImageContributionService.approve_linked

        def approve_then_fail(self, *args, **kwargs):
            real_approve_linked(self, *args, **kwargs)
            raise RuntimeError("ledger unavailable")

        monkeypatch.setattr(ImageContributionService, "approve_linked", approve_then_fail)
        with pytest.raises(RuntimeError):
            ApprovalApplier(db, staging).approve(moderator, contribution_id)

        db.expire_all()
        assert db.get(Contribution, contribution_id).status == ProposalStatus.PENDING
        restored = db.get(ImageContribution, image_id)
        assert restored.status == ProposalStatus.PENDING
        assert restored.path == staged_path
        assert (staging.root / staged_path).exists()
        assert not (staging.root / staging.durable_key_for(staged_path)).exists()
        assert db.query(VehicleImage).count() == 0
