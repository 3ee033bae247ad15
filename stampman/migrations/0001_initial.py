# Generated migration for the stamp ledger

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=200, verbose_name="name")),
                ("end_date", models.DateTimeField(verbose_name="ends at")),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, verbose_name="created at"),
                ),
            ],
            options={
                "verbose_name": "event",
                "verbose_name_plural": "events",
                "ordering": ["-end_date"],
            },
        ),
        migrations.CreateModel(
            name="Member",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=100, verbose_name="name")),
                (
                    "phone",
                    models.CharField(
                        help_text="Digits only (e.g. 01012345678)",
                        max_length=20,
                        unique=True,
                        verbose_name="phone",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[("active", "Active"), ("temporary", "Temporary")],
                        db_index=True,
                        default="active",
                        max_length=20,
                        verbose_name="status",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, verbose_name="created at"),
                ),
            ],
            options={
                "verbose_name": "member",
                "verbose_name_plural": "members",
                "ordering": ["name"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("phone", ""), _negated=True),
                        name="stampman_member_phone_not_empty",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="ClaimableStamp",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "claim_code",
                    models.CharField(max_length=64, unique=True, verbose_name="claim code"),
                ),
                ("expires_at", models.DateTimeField(verbose_name="expires at")),
                (
                    "max_uses",
                    models.PositiveIntegerField(
                        blank=True,
                        default=1,
                        help_text="Empty means unlimited",
                        null=True,
                        verbose_name="max uses",
                    ),
                ),
                (
                    "current_uses",
                    models.PositiveIntegerField(default=0, verbose_name="current uses"),
                ),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, verbose_name="created at"),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="claimable_stamps",
                        to="stampman.event",
                        verbose_name="event",
                    ),
                ),
            ],
            options={
                "verbose_name": "claimable stamp",
                "verbose_name_plural": "claimable stamps",
                "db_table": "stampman_claimable_stamp",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            models.Q(("max_uses__isnull", True))
                            | models.Q(("current_uses__lte", models.F("max_uses")))
                        ),
                        name="stampman_uses_within_limit",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="StampCard",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "is_redeemed",
                    models.BooleanField(default=False, verbose_name="redeemed"),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, verbose_name="created at"
                    ),
                ),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stamp_cards",
                        to="stampman.member",
                        verbose_name="member",
                    ),
                ),
            ],
            options={
                "verbose_name": "stamp card",
                "verbose_name_plural": "stamp cards",
                "db_table": "stampman_stamp_card",
                "ordering": ["-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_redeemed", False)),
                        fields=("member",),
                        name="stampman_one_active_card_per_member",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="Coupon",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("code", models.CharField(max_length=40, unique=True, verbose_name="code")),
                (
                    "description",
                    models.CharField(max_length=200, verbose_name="description"),
                ),
                ("expires_at", models.DateTimeField(verbose_name="expires at")),
                ("is_used", models.BooleanField(default=False, verbose_name="used")),
                (
                    "used_at",
                    models.DateTimeField(blank=True, null=True, verbose_name="used at"),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True, db_index=True, verbose_name="created at"
                    ),
                ),
                (
                    "stamp_card",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="coupon",
                        to="stampman.stampcard",
                        verbose_name="stamp card",
                    ),
                ),
            ],
            options={
                "verbose_name": "coupon",
                "verbose_name_plural": "coupons",
                "db_table": "stampman_coupon",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Redemption",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "redeemed_at",
                    models.DateTimeField(auto_now_add=True, verbose_name="redeemed at"),
                ),
                (
                    "claimable_stamp",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="redemptions",
                        to="stampman.claimablestamp",
                        verbose_name="claimable stamp",
                    ),
                ),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="redemptions",
                        to="stampman.member",
                        verbose_name="member",
                    ),
                ),
            ],
            options={
                "verbose_name": "redemption",
                "verbose_name_plural": "redemptions",
                "db_table": "stampman_redemption",
                "ordering": ["-redeemed_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("claimable_stamp", "member"),
                        name="stampman_one_redemption_per_member",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="StampEntry",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "admin_note",
                    models.CharField(
                        blank=True,
                        help_text="Reason for a manual grant (used when there is no event)",
                        max_length=200,
                        verbose_name="admin note",
                    ),
                ),
                ("slot", models.PositiveSmallIntegerField(verbose_name="slot")),
                ("is_viewed", models.BooleanField(default=False, verbose_name="viewed")),
                (
                    "created_at",
                    models.DateTimeField(auto_now_add=True, verbose_name="created at"),
                ),
                (
                    "created_by",
                    models.CharField(blank=True, max_length=100, verbose_name="created by"),
                ),
                (
                    "event",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stamp_entries",
                        to="stampman.event",
                        verbose_name="event",
                    ),
                ),
                (
                    "member",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stamp_entries",
                        to="stampman.member",
                        verbose_name="member",
                    ),
                ),
                (
                    "stamp_card",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="entries",
                        to="stampman.stampcard",
                        verbose_name="stamp card",
                    ),
                ),
            ],
            options={
                "verbose_name": "stamp entry",
                "verbose_name_plural": "stamp entries",
                "db_table": "stampman_stamp_entry",
                "ordering": ["stamp_card", "slot"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("stamp_card", "event"),
                        name="stampman_one_stamp_per_event",
                    ),
                    models.UniqueConstraint(
                        fields=("stamp_card", "slot"),
                        name="stampman_unique_card_slot",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("slot__gte", 1), ("slot__lte", 10)),
                        name="stampman_slot_within_capacity",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("event__isnull", False),
                            models.Q(("admin_note", ""), _negated=True),
                            _connector="OR",
                        ),
                        name="stampman_entry_has_source",
                    ),
                ],
            },
        ),
    ]
