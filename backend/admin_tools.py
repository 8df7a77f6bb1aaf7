#!/usr/bin/env python3
"""
Admin Tools untuk Psikotes AI
Skrip untuk tugas administratif: membuat admin, mengubah membership, melihat pengguna dan sesi.
"""

import os
import argparse
import asyncio
from typing import Optional

from dotenv import load_dotenv

dotenv_path = os.path.join(os.path.dirname(__file__), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path)


from sqlalchemy import select, func

from psikotes.core.database import AsyncSessionLocal, create_db_and_tables
from psikotes.models.test import TestSession
from psikotes.models.kreplin import KreplinResult
from psikotes.models.user import User
from psikotes.schemas.user import AdminUserCreate, AdminUserUpdate
from psikotes.services.user_service import UserService, EmailAlreadyRegisteredError, InvalidUserUpdateError
from psikotes.utils.timezone import format_jakarta_time


async def create_admin_user(email: str, password: str, name: Optional[str]) -> bool:
    """Buat pengguna dengan peran admin"""
    await create_db_and_tables()
    async with AsyncSessionLocal() as db:
        try:
            user = await UserService(db).admin_create_user(
                AdminUserCreate(email=email, password=password, name=name, role="admin", membership_type="member")
            )
        except EmailAlreadyRegisteredError:
            print(f"❌ Pengguna dengan email {email} sudah ada")
            return False

        print("✅ Admin berhasil dibuat!")
        print(f"   Email: {user.email}")
        print(f"   Nama: {user.name or '-'}")
        print(f"   ID: {user.id}")
        return True


async def set_membership(email: str, membership_type: str, expires_at: Optional[str], role: Optional[str]) -> bool:
    async with AsyncSessionLocal() as db:
        service = UserService(db)
        user = await service.get_user_by_email(email)
        if user is None:
            print(f"❌ Pengguna {email} tidak ditemukan")
            return False

        changes = {"membership_type": membership_type}
        if expires_at is not None:
            changes["membership_expires_at"] = expires_at
        if role:
            changes["role"] = role

        try:
            user = await service.admin_update_user(user.id, AdminUserUpdate(**changes))
        except InvalidUserUpdateError as e:
            print(f"❌ {e}")
            return False

        print(f"✅ {user.email}: {user.role} / {user.membership_type}")
        if user.membership_expires_at:
            print(f"   Berlaku sampai: {format_jakarta_time(user.membership_expires_at)} WIB")
        return True


async def list_users(show_detailed: bool = False) -> None:
    """Tampilkan semua pengguna"""
    async with AsyncSessionLocal() as db:
        rows = await UserService(db).list_users_with_stats()

        if not rows:
            print("📋 Tidak ada pengguna")
            return

        print(f"📋 Total pengguna: {len(rows)}")
        print("=" * 80)

        for user, total, completed in rows:
            status = "👑 Admin" if user.is_admin else "👤 Pengguna"
            print(f"ID: {user.id} | {status} | {user.membership_type}")
            print(f"   Nama: {user.name or '-'}")
            print(f"   Email: {user.email}")
            print(f"   Dibuat: {format_jakarta_time(user.created_at)}")

            if show_detailed:
                print(f"   Sesi: {total} (selesai: {completed})")
                kreplin_count = (await db.execute(
                    select(func.count(KreplinResult.id)).filter(KreplinResult.user_id == user.id)
                )).scalar_one()
                print(f"   Hasil Tes Koran: {kreplin_count}")
                if user.last_seen_at:
                    print(f"   Terakhir terlihat: {format_jakarta_time(user.last_seen_at)}")

            print("-" * 80)


async def show_test_sessions(email: Optional[str] = None, limit: int = 20) -> None:
    async with AsyncSessionLocal() as db:
        query = select(TestSession, User.email).join(User, User.id == TestSession.user_id)
        if email:
            query = query.filter(User.email == email.strip().lower())
        rows = (await db.execute(query.order_by(TestSession.started_at.desc()).limit(limit))).all()

        if not rows:
            print("📝 Sesi tidak ditemukan")
            return

        print(f"📝 Sesi ditemukan: {len(rows)}")
        print("=" * 80)
        for db_session, owner in rows:
            score = f"{db_session.score:.1f}" if db_session.score is not None else "-"
            public = f" 🌐 {db_session.public_id}" if db_session.is_public else ""
            print(f"{db_session.id} | {owner}")
            print(
                f"   {db_session.category}/{db_session.difficulty} ({db_session.user_type}), "
                f"{db_session.question_count} soal, skor: {score}{public}"
            )
            print(f"   Mulai: {format_jakarta_time(db_session.started_at)}")


def main():
    parser = argparse.ArgumentParser(description="Admin Tools untuk Psikotes AI")
    subparsers = parser.add_subparsers(dest='command', help='Perintah yang tersedia')

    create_admin_parser = subparsers.add_parser('create-admin', help='Buat admin')
    create_admin_parser.add_argument('--email', required=True, help='Email admin')
    create_admin_parser.add_argument('--password', required=True, help='Password admin')
    create_admin_parser.add_argument('--name', help='Nama admin')

    membership_parser = subparsers.add_parser('set-membership', help='Ubah membership pengguna')
    membership_parser.add_argument('--email', required=True, help='Email pengguna')
    membership_parser.add_argument('--type', required=True, choices=['member', 'non_member'], dest='membership_type')
    membership_parser.add_argument('--expires-at', help='Tanggal kedaluwarsa (ISO, mis. 2026-12-31)')
    membership_parser.add_argument('--role', choices=['user', 'admin'], help='Ubah peran sekaligus')

    list_users_parser = subparsers.add_parser('list-users', help='Tampilkan daftar pengguna')
    list_users_parser.add_argument('--detailed', action='store_true', help='Informasi lengkap')

    sessions_parser = subparsers.add_parser('sessions', help='Tampilkan sesi latihan')
    sessions_parser.add_argument('--email', help='Email pemilik sesi')
    sessions_parser.add_argument('--limit', type=int, default=20)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    print("🚀 Psikotes AI - Admin Tools")
    print("=" * 50)

    if args.command == 'create-admin':
        asyncio.run(create_admin_user(args.email, args.password, args.name))

    elif args.command == 'set-membership':
        asyncio.run(set_membership(args.email, args.membership_type, args.expires_at, args.role))

    elif args.command == 'list-users':
        asyncio.run(list_users(args.detailed))

    elif args.command == 'sessions':
        asyncio.run(show_test_sessions(args.email, args.limit))


if __name__ == "__main__":
    main()
