# NCSTACK v1.0
def get_success_message(config: dict) -> str:
    '''Get success message after installation'''
    record = config.get('env', {})
    domain = record.get('DOMAIN_NAME', 'localhost')

    message = f"""☁️ Nextcloud installation complete!

Access URLs:
  📱 Nextcloud:          https://{domain}
  🔧 Traefik Dashboard:  https://{domain}/dashboard/
  📞 Nextcloud Talk:     https://signal.{domain}

Credentials:
  👤 Nextcloud Admin:    {record.get('NEXTCLOUD_ADMIN_USER', 'admin')}
  🔑 Nextcloud Password: {record.get('NEXTCLOUD_ADMIN_PASSWORD', '')}
  🔐 Traefik Dashboard:  admin / {record.get('TRAEFIK_DASHBOARD_PASSWORD', '')}

Talk High-Performance Backend:
  🔌 Signaling server:   wss://signal.{domain}
  🔐 Signaling secret:   {record.get('SIGNALING_SECRET', '')}
  🌐 TURN server:        signal.{domain}:3478
  🔑 TURN secret:        {record.get('TURN_SECRET', '')}

Important Notes:
  • Make sure your DNS points to this server
  • If Traefik shows 'starting', wait 5-10 minutes for health checks
  • If the dashboard shows a Nextcloud error, run: python main.py test-dashboard
  • Keep your .env file secure - it contains all passwords
  • Run 'python main.py troubleshoot' for system diagnostics
"""

    return message
