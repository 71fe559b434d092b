import os
import sys

import psycopg

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)) + '/..')

from settings import settings

DDL = '''
CREATE EXTENSION IF NOT EXISTS pgcrypto;

CREATE TABLE IF NOT EXISTS reports (
    id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    description TEXT,
    photo_url TEXT NOT NULL,
    location JSONB NOT NULL,
    status TEXT NOT NULL DEFAULT 'submitted'
        CHECK (status IN ('submitted', 'in_review', 'in_progress', 'resolved', 'rejected')),
    urgency TEXT CHECK (urgency IN ('low', 'medium', 'high')),
    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT now(),
    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_reports_user_created ON reports (user_id, created_at DESC);

CREATE TABLE IF NOT EXISTS messages (
    id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
    report_id TEXT NOT NULL REFERENCES reports (id) ON DELETE CASCADE,
    sender TEXT NOT NULL CHECK (sender IN ('user', 'city')),
    text TEXT NOT NULL,
    system BOOLEAN NOT NULL DEFAULT false,
    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT now()
);

CREATE INDEX IF NOT EXISTS idx_messages_report_created ON messages (report_id, created_at ASC);

-- municipal status changes refresh updated_at
CREATE OR REPLACE FUNCTION touch_report_updated_at() RETURNS trigger AS $$
BEGIN
    IF NEW.status IS DISTINCT FROM OLD.status THEN
        NEW.updated_at := now();
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS reports_touch_updated_at ON reports;
CREATE TRIGGER reports_touch_updated_at
    BEFORE UPDATE ON reports
    FOR EACH ROW EXECUTE FUNCTION touch_report_updated_at();

-- realtime feed: one channel per report
CREATE OR REPLACE FUNCTION notify_message_insert() RETURNS trigger AS $$
BEGIN
    PERFORM pg_notify('report_messages_' || NEW.report_id, row_to_json(NEW)::text);
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS messages_notify_insert ON messages;
CREATE TRIGGER messages_notify_insert
    AFTER INSERT ON messages
    FOR EACH ROW EXECUTE FUNCTION notify_message_insert();
'''

print('Connecting to', settings.db_url)
with psycopg.connect(settings.db_url, connect_timeout=5) as conn:
    with conn.cursor() as cur:
        cur.execute(DDL)
    conn.commit()
print('DDL applied')
