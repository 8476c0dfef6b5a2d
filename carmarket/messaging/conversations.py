"""
Conversation aggregation over a user's flat message list.

A conversation is keyed by the other participant. Every message lands in
exactly one bucket; grouping is a single pass over the messages.
"""


class UnreadTracker:
    """
    Per-counterparty unread counters for one user.

    Incoming messages count against their sender unless that sender's
    conversation is the one currently open. Opening a conversation
    zeroes its counter.
    """

    def __init__(self, user_id, open_counterparty_id=None):
        self.user_id = user_id
        self.open_counterparty_id = open_counterparty_id
        self.counts = {}

    def observe(self, message):
        """Count ``message`` if it is an unread incoming message"""
        if message.receiver_id != self.user_id or message.sender_id == self.user_id:
            return
        if message.read:
            return
        if message.sender_id == self.open_counterparty_id:
            return
        self.counts[message.sender_id] = self.counts.get(message.sender_id, 0) + 1

    def open(self, counterparty_id):
        self.open_counterparty_id = counterparty_id
        self.counts.pop(counterparty_id, None)

    def count_for(self, counterparty_id):
        return self.counts.get(counterparty_id, 0)

    @property
    def total(self):
        return sum(self.counts.values())


class Conversation:
    """One bucket: the counterparty and the messages exchanged with them"""

    def __init__(self, counterparty_id, representative):
        self.counterparty_id = counterparty_id
        # First message encountered; identifies the listing and search text
        self.representative = representative
        self.latest = representative
        self.message_count = 0
        self.unread_count = 0

    def add(self, message):
        self.message_count += 1
        if message.created_at > self.latest.created_at:
            self.latest = message

    def counterparty(self, user_id):
        return self.representative.counterparty(user_id)

    def matches(self, term, user_id):
        """Case-insensitive match on counterparty name, listing brand/model or message content"""
        if not term:
            return True
        term = term.lower()
        other = self.counterparty(user_id)
        listing = self.representative.listing
        candidates = [
            getattr(other, 'full_name', '') or '',
            getattr(listing, 'brand', '') or '',
            getattr(listing, 'model', '') or '',
            self.representative.content or '',
        ]
        return any(term in value.lower() for value in candidates)


def group_conversations(messages, user_id, open_counterparty_id=None, search=None):
    """
    Group ``messages`` (newest first, as fetched) into conversations.

    Returns:
        (conversations, tracker) where conversations are ordered by their
        latest message, newest first, and tracker holds the unread counts.
    """
    buckets = {}
    tracker = UnreadTracker(user_id, open_counterparty_id)
    for message in messages:
        other_id = message.counterparty_id(user_id)
        conversation = buckets.get(other_id)
        if conversation is None:
            conversation = buckets[other_id] = Conversation(other_id, message)
        conversation.add(message)
        tracker.observe(message)

    conversations = []
    for conversation in buckets.values():
        conversation.unread_count = tracker.count_for(conversation.counterparty_id)
        if conversation.matches(search, user_id):
            conversations.append(conversation)
    conversations.sort(key=lambda c: c.latest.created_at, reverse=True)
    return conversations, tracker


def conversation_history(messages, user_id, counterparty_id):
    """Messages between ``user_id`` and ``counterparty_id``, oldest first"""
    history = [m for m in messages if m.counterparty_id(user_id) == counterparty_id]
    return sorted(history, key=lambda m: (m.created_at, m.id))
