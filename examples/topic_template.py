#!/usr/bin/env python3
"""
Example Python template for ``stackflow deploy -t examples/topic_template.py``.

``template`` receives the ``--param`` values as a dict.
"""

from troposphere import Output, Ref, Template
from troposphere.sns import Topic


def template(params):
    environment = params.get("Environment", "dev")

    t = Template()
    t.set_description(f"Notification topic ({environment})")

    topic = t.add_resource(Topic("NotificationTopic", DisplayName=f"alerts-{environment}"))
    t.add_output(Output("TopicArn", Value=Ref(topic)))

    return t
