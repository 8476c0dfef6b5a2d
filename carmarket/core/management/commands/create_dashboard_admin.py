from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.contrib.auth.password_validation import validate_password
from django.core.management.base import BaseCommand, CommandError

User = get_user_model()


class Command(BaseCommand):
    help = 'Create a staff account for the admin dashboard, or reset its password'

    def add_arguments(self, parser):
        parser.add_argument('email')
        parser.add_argument('password')
        parser.add_argument('--username', default=None, help='Dashboard login name (defaults to the email)')
        parser.add_argument('--full-name', default='Administrator')

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        password = options['password']
        try:
            validate_password(password)
        except ValidationError as e:
            raise CommandError('; '.join(e.messages))

        user = User.objects.filter(email__iexact=email).first()
        if user:
            user.set_password(password)
            user.is_staff = True
            user.is_active = True
            if options['username']:
                user.username = options['username']
            user.save()
            self.stdout.write(self.style.SUCCESS(f'✓ Updated dashboard admin: {email}'))
            return

        User.objects.create_user(
            email=email,
            password=password,
            username=options['username'],
            full_name=options['full_name'],
            is_staff=True,
        )
        self.stdout.write(self.style.SUCCESS(f'✓ Created dashboard admin: {email}'))
