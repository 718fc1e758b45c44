"""tpm_dashboard.integrations — outbound notification and ticketing channels.

All outbound calls to Slack, Teams, email and the ticketing system go through
a sink or client in this package, never via bare ``requests`` calls in
services or blueprints.

  base.NotificationSink   send(message) -> DeliveryResult
  base.TicketingClient    create_issue / create_epic -> TicketResult
  registry.get_sink / registry.get_ticketing_client
      resolve a channel name to a configured implementation, raising
      IntegrationNotConfiguredError when the channel is not connected.
"""
