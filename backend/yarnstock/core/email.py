"""
邮件发送

邀请注册和重置密码邮件在后台任务中通过 SMTP 发送。
未配置 SMTP_HOST 时不发送，只把链接写入日志（开发环境可直接从日志复制链接）。
"""

import logging
import smtplib
from email.message import EmailMessage

from fastapi import BackgroundTasks

from yarnstock.core.config import settings

logger = logging.getLogger(__name__)


def build_registration_link(token: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}/register?token={token}"


def build_reset_link(token: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}/reset-password?token={token}"


def registration_email_body(link: str) -> str:
    return (
        "Hello,\n\n"
        f"{settings.INVITER_NAME} has invited you to join {settings.COMPANY_NAME}.\n"
        "Click the link below to complete your registration and create your account credentials:\n\n"
        f"{link}\n\n"
        f"This registration link will expire in {settings.REGISTER_TOKEN_EXPIRE_MINUTES // (60 * 24)} days.\n"
    )


def reset_email_body(link: str) -> str:
    return (
        "Hello,\n\n"
        f"We received a request to reset the password of your {settings.COMPANY_NAME} account.\n"
        "Click the link below to choose a new password:\n\n"
        f"{link}\n\n"
        f"This link will expire in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes and can only be used once.\n"
        "If you did not request a password reset, you can ignore this email.\n"
    )


def _send_email(to_email: str, subject: str, body: str) -> None:
    """同步发送一封纯文本邮件（在后台任务中执行）"""
    msg = EmailMessage()
    msg["From"] = settings.SMTP_FROM or settings.SMTP_USER
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as smtp:
            smtp.starttls()
            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            smtp.send_message(msg)
        logger.info(f"邮件已发送: {to_email} [{subject}]")
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"邮件发送失败: {to_email} [{subject}]: {e}")


def queue_email(background_tasks: BackgroundTasks, to_email: str, subject: str, body: str) -> bool:
    """
    加入后台发送队列

    Returns:
        是否已加入队列（未配置 SMTP 时为 False）
    """
    if not settings.SMTP_HOST:
        logger.info(f"未配置SMTP，跳过发送邮件: {to_email} [{subject}]\n{body}")
        return False
    background_tasks.add_task(_send_email, to_email, subject, body)
    return True


def send_registration_email(background_tasks: BackgroundTasks, to_email: str, token: str) -> bool:
    link = build_registration_link(token)
    subject = f"You're invited to {settings.COMPANY_NAME}"
    return queue_email(background_tasks, to_email, subject, registration_email_body(link))


def send_password_reset_email(background_tasks: BackgroundTasks, to_email: str, token: str) -> bool:
    link = build_reset_link(token)
    subject = f"Reset your {settings.COMPANY_NAME} password"
    return queue_email(background_tasks, to_email, subject, reset_email_body(link))
