"""
Management command: setup_roles
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Seeds the database with the four portal **Roles** (citizen, ward
officer, maintenance team, administrator).

The command is **idempotent** — safe to run multiple times.  Existing
roles keep their primary keys; only the description is refreshed.

Usage::

    python manage.py setup_roles
"""

from django.core.management.base import BaseCommand

from accounts.models import Role, UserRole

ROLE_DESCRIPTIONS: dict[str, str] = {
    UserRole.CITIZEN: "Files complaints and follows their progress.",
    UserRole.WARD_OFFICER: "Triages complaints in a ward and assigns maintenance teams.",
    UserRole.MAINTENANCE_TEAM: "Executes field work on assigned complaints.",
    UserRole.ADMINISTRATOR: "Oversees every complaint; the only role that may reopen.",
}


class Command(BaseCommand):
    help = "Create or update the default portal roles."

    def handle(self, *args, **options):
        created_count = 0
        updated_count = 0

        for code, description in ROLE_DESCRIPTIONS.items():
            role, created = Role.objects.get_or_create(
                name=code,
                defaults={"description": description},
            )
            if created:
                created_count += 1
            elif role.description != description:
                role.description = description
                role.save(update_fields=["description"])
                updated_count += 1

            action = "Created" if created else "Checked"
            self.stdout.write(self.style.SUCCESS(f"  ✔  {action} role: {code}"))

        self.stdout.write(self.style.SUCCESS(
            f"  Done!  {created_count} role(s) created, {updated_count} updated."
        ))
