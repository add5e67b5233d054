"""Broadcast email template: one HTML body per recipient."""

from html import escape

STORE_NAME = "Storefront"


class BroadcastTemplate:
    @staticmethod
    def render(context: dict) -> str:
        headline = escape(context.get("headline", ""))
        body = escape(context.get("body", "")).replace("\n", "<br/>")
        name = escape(context.get("recipient_name") or "Customer")
        image_url = context.get("image_url")
        image_block = (
            f'<div style="margin-top:20px;"><img src="{escape(image_url)}" alt="Promotion" '
            'style="width:100%;max-width:640px;border-radius:16px;display:block;"/></div>'
            if image_url
            else ""
        )

        return (
            "<!doctype html>\n"
            '<html><body style="margin:0;padding:24px 12px;background:#f1f5f9;font-family:Arial,sans-serif;">'
            '<table role="presentation" width="100%" cellspacing="0" cellpadding="0" '
            'style="max-width:680px;margin:0 auto;background:#ffffff;border-radius:18px;">'
            f'<tr><td style="padding:20px 24px;background:#0f172a;color:#f8fafc;">'
            f'<div style="font-size:12px;letter-spacing:0.2em;text-transform:uppercase;">{STORE_NAME}</div>'
            f'<h1 style="margin:10px 0 0;font-size:28px;">{headline}</h1></td></tr>'
            f'<tr><td style="padding:24px;color:#0f172a;">'
            f'<p style="margin:0 0 14px;">Hello {name},</p>'
            f'<p style="margin:0;line-height:1.8;color:#334155;">{body}</p>'
            f"{image_block}</td></tr></table></body></html>"
        )
