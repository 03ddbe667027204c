#!/usr/bin/env python
import os
import sys
import django
from dotenv import load_dotenv

# Add parent directory to Python path for Django imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Load environment variables from parent directory
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'))

# Set up Django
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'capstone_portal.settings')
django.setup()

from django.contrib.auth import get_user_model

def create_superuser():
    User = get_user_model()
    admin_username = os.getenv('DEV_ADMIN_USER', 'devadmin')
    password = os.getenv('DEV_ADMIN_USER_PASSWORD', 'admin123!')
    first_name = os.getenv('DEV_ADMIN_FIRST_NAME', 'Portal')
    last_name = os.getenv('DEV_ADMIN_LAST_NAME', 'Administrator')

    if User.objects.filter(username=admin_username).exists():
        print(f"Admin account '{admin_username}' already exists!")
        return

    User.objects.create_superuser(
        admin_username,
        password,
        email=f"{admin_username}@example.com",
        first_name=first_name,
        last_name=last_name,
    )
    print("Admin account created (staff, Admin role).")
    print(f"Username: {admin_username}")
    print(f"Name: {first_name} {last_name}")

if __name__ == "__main__":
    create_superuser()
